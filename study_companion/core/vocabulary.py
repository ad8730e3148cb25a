from typing import List, NamedTuple


class VocabEntry(NamedTuple):
    word: str
    meaning: str


# Word list for the English vocabulary quiz. The word is the selection key.
VOCABULARY: List[VocabEntry] = [
    VocabEntry("reliable", "믿을 수 있는"),
    VocabEntry("promote", "증진[촉진]하다"),
    VocabEntry("adjust", "적응하다"),
    VocabEntry("predict", "예언하다"),
    VocabEntry("install", "설치하다"),
    VocabEntry("alternative", "대안"),
    VocabEntry("variable", "변하기 쉬운"),
    VocabEntry("various", "다양한"),
    VocabEntry("varied", "가지각색의"),
    VocabEntry("appoint", "임명[지명]하다"),
    VocabEntry("locate", "위치하다"),
    VocabEntry("celebrity", "유명 인사"),
    VocabEntry("handle", "처리하다"),
    VocabEntry("originate", "생기다"),
    VocabEntry("aware", "알아차린"),
    VocabEntry("caution", "조심"),
    VocabEntry("barrier", "장애"),
    VocabEntry("anticipate", "예상하다"),
    VocabEntry("breed", "번식하다"),
    VocabEntry("commit", "범하다"),
    VocabEntry("hence", "따라서"),
    VocabEntry("theorize", "세우다"),
    VocabEntry("assert", "주장하다"),
    VocabEntry("distribute", "나누어 주다"),
    VocabEntry("exclude", "제외하다"),
    VocabEntry("approach", "접근하다"),
    VocabEntry("nevertheless", "그럼에도 불구하고"),
    VocabEntry("fair", "공평한"),
    VocabEntry("attempt", "시도"),
    VocabEntry("merely", "한낱"),
    VocabEntry("comfort", "위로"),
    VocabEntry("import", "수입하다"),
    VocabEntry("register", "등록하다"),
    VocabEntry("accuse", "고발하다"),
    VocabEntry("include", "포함하다"),
    VocabEntry("prohibit", "금지하다"),
    VocabEntry("transmit", "전송하다"),
    VocabEntry("sustain", "지탱하다"),
    VocabEntry("exploit", "착취하다"),
    VocabEntry("interpret", "해석하다"),
    VocabEntry("derive", "끌어내다"),
    VocabEntry("evolve", "진화하다"),
    VocabEntry("contribute", "기여하다"),
    VocabEntry("involve", "관련시키다"),
    VocabEntry("modify", "수정하다"),
    VocabEntry("neglect", "무시하다"),
    VocabEntry("obtain", "얻다"),
    VocabEntry("persuade", "설득하다"),
    VocabEntry("reject", "거절하다"),
    VocabEntry("reveal", "드러내다"),
    VocabEntry("sequence", "순서"),
    VocabEntry("skeptical", "회의적인"),
    VocabEntry("substance", "물질"),
    VocabEntry("vulnerable", "취약한"),
    VocabEntry("utilize", "활용하다"),
]
