"""Test package for the Hanzi Trainer.

Core tests exercise the segmenter, ghost sizing, slot surfaces, practice
queue and session controller without any rendering. The smoke tests run
the pygame shell headlessly with SDL's dummy drivers. Run ``pytest`` from
the project root.
"""
