from __future__ import annotations

import re
from pathlib import Path

from .practice_queue import VocabularyRecord

_HEADER_RE = re.compile(r"^\s*hanzi\s*,\s*pinyin\s*,\s*english\s*$", re.IGNORECASE)

SAMPLE_CSV = """hanzi,pinyin,english
你好,nǐ hǎo,hello
好,hǎo,good fine
你,nǐ,you
是,shì,to be; yes
老师,lǎoshī,teacher
吗,ma,interrogative particle
不,bù,not; no
我,wǒ,I me
学生,xuésheng,student
她,tā,she her
谢谢,xièxie,thank you
不客气,bù kèqi,you’re welcome
您,nín,(polite) you
留学生,liúxuéshēng,foreign student; international student
叫,jiào,to call; to be called
什么,shénme,what
名字,míngzi,name
同学,tóngxué,classmate
们,men,suffix denoting plurality
来,lái,to come; used before another verb to indicate someone will do something
介绍,jièshào,to introduce
一下儿,yíxiàr,used after a verb to indicate a brief action
姓,xìng,to be surnamed; surname
的,de,auxiliary word indicating possession
哪,nǎ,which
国,guó,country
人,rén,people person
他,tā,he him
认识,rènshi,to meet; to know someone
很,hěn,very
高兴,gāoxìng,glad; happy
也,yě,too; also
呢,ne,modal particle for elliptical questions
就是,jiù shì,it means; it is
日语,Rìyǔ,Japanese language
这,zhè,this
杂志,zázhì,magazine
音乐,yīnyuè,music
朋友,péngyou,friend
汉日词典,Hàn-Rì Cídiǎn,Chinese-Japanese Dictionary
中村,Zhōngcún,a Japanese surname
日本,Rìběn,Japan
刘,Liú,a Chinese surname
刘明,Liú Míng,name of a person (male)
美国,Měiguó,America
玛丽,Mǎlì,name of a person (female)
加拿大,Jiānádà,Canada
中国,Zhōngguó,China
那,nà,that
谁,shéi/shuí,who; whom
书,shū,book
同屋,tóngwū,roommate
汉语,Hànyǔ,Chinese language
课本,kèběn,textbook
词典,cídiǎn,dictionary
"""


def split_line(line: str) -> tuple[str, str, str]:
    """Split on the first two commas; the meaning keeps any further commas."""

    parts = line.split(",")
    front = parts[0] if parts else ""
    pronunciation = parts[1] if len(parts) > 1 else ""
    meaning = ",".join(parts[2:])
    return front, pronunciation, meaning


def parse_vocabulary_csv(text: str) -> list[VocabularyRecord]:
    lines = [ln.strip() for ln in text.splitlines()]
    lines = [ln for ln in lines if ln != ""]
    if lines and _HEADER_RE.match(lines[0]):
        lines = lines[1:]

    records: list[VocabularyRecord] = []
    for line in lines:
        front, pronunciation, meaning = split_line(line)
        front = front.strip()
        if front == "":
            continue
        records.append(
            VocabularyRecord(
                front_text=front,
                pronunciation=pronunciation.strip(),
                meaning=meaning.strip(),
            )
        )
    return records


def load_vocabulary(path: Path) -> list[VocabularyRecord]:
    # utf-8-sig tolerates the BOM spreadsheet exports tend to add.
    return parse_vocabulary_csv(Path(path).read_text(encoding="utf-8-sig"))


def sample_vocabulary() -> list[VocabularyRecord]:
    return parse_vocabulary_csv(SAMPLE_CSV)
