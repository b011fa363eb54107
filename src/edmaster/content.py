from typing import List

from .models import RuleCategory, WordItem

DEFAULT_WORDS: List[WordItem] = [
    WordItem(word="walked", sound="t", rule="Ends with voiceless /k/", exampleSentence="He walked to the park."),
    WordItem(word="played", sound="d", rule="Ends with voiced vowel /eɪ/", exampleSentence="They played soccer all afternoon."),
    WordItem(word="wanted", sound="id", rule="Ends with /t/", exampleSentence="She wanted a new bicycle."),
    WordItem(word="needed", sound="id", rule="Ends with /d/", exampleSentence="We needed some milk."),
    WordItem(word="laughed", sound="t", rule="Ends with voiceless /f/", exampleSentence="He laughed at the joke."),
    WordItem(word="cleaned", sound="d", rule="Ends with voiced /n/", exampleSentence="She cleaned her room."),
    WordItem(word="fixed", sound="t", rule="Ends with voiceless /ks/", exampleSentence="The mechanic fixed the car."),
    WordItem(word="climbed", sound="d", rule="Ends with voiced /m/", exampleSentence="They climbed the mountain."),
    WordItem(word="stopped", sound="t", rule="Ends with voiceless /p/", exampleSentence="The bus stopped at the corner."),
    WordItem(word="added", sound="id", rule="Ends with /d/", exampleSentence="She added sugar to her tea."),
]

DEFAULT_RULES: List[RuleCategory] = [
    RuleCategory(
        category="/t/ Sound",
        description="Used after voiceless consonant sounds: /p/, /k/, /f/, /s/, /ʃ/ (sh), /tʃ/ (ch), /θ/ (th).",
        examples=["jumped", "kicked", "sniffed", "kissed", "washed", "watched"],
    ),
    RuleCategory(
        category="/d/ Sound",
        description="Used after voiced sounds: /b/, /g/, /v/, /z/, /l/, /m/, /n/, /r/, and all vowels.",
        examples=["robbed", "hugged", "lived", "buzzed", "called", "named", "turned", "shared"],
    ),
    RuleCategory(
        category="/ɪd/ Sound",
        description="Used only after the consonant sounds /t/ or /d/.",
        examples=["painted", "shouted", "started", "decided", "ended", "folded"],
    ),
]

# Shown on the results screen, keyed by minimum percentage.
RESULT_NOTES = [
    (90, "Excellent job! You are mastering this level."),
    (70, "Good work. Try focusing on the voiced vs voiceless distinction."),
    (0, "Keep practicing! Focus on the /id/ sound, it only happens after 't' and 'd'."),
]


def result_note(percentage: int) -> str:
    for threshold, note in RESULT_NOTES:
        if percentage >= threshold:
            return note
    return RESULT_NOTES[-1][1]
