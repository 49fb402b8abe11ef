"""Keyword-overlap FAQ matcher for the site chat widget.

No language model is involved: a visitor message is reduced to keywords and
compared against a fixed catalogue of questions.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

MATCH_THRESHOLD = 0.3

STOPWORDS = frozenset(
    {
        "what", "are", "you", "your", "do", "the", "a", "an", "is", "if", "how",
        "can", "i", "should", "will", "does", "have", "has", "had", "be", "been",
        "being", "get", "got", "provide", "offers", "offer", "to", "from", "of",
        "in", "on", "at", "by", "for", "with", "or", "and", "but", "not", "no",
        "yes", "my", "me", "him", "her", "them", "us", "we",
    }
)

_PUNCTUATION_RE = re.compile(r"[?.,!]")

DEFAULT_FALLBACK = (
    "Thank you for contacting SmileCraft Dental. For detailed information, please call "
    "our clinic or book an appointment through our website."
)


@dataclass(frozen=True)
class FaqEntry:
    question: str
    answer: str


@dataclass(frozen=True)
class FaqAnswer:
    answer: str
    matched_question: str | None
    score: float

    @property
    def is_fallback(self) -> bool:
        return self.matched_question is None


FAQS: tuple[FaqEntry, ...] = (
    # General
    FaqEntry(
        "What are your clinic hours?",
        "SmileCraft Dental is open Monday to Saturday from 9:00 AM to 7:00 PM. We are closed on Sundays.",
    ),
    FaqEntry(
        "Where is your clinic located?",
        "SmileCraft Dental is centrally located for easy access. Please visit our Contact section "
        "on the website for the full address and Google Maps directions.",
    ),
    FaqEntry(
        "How can I book an appointment?",
        'You can book an appointment directly through our website using the "Book Appointment" '
        "form, or you can call us during clinic hours.",
    ),
    FaqEntry(
        "Do you accept walk-in patients?",
        "We recommend booking an appointment in advance, but we do accept walk-in patients based on availability.",
    ),
    # Treatments
    FaqEntry(
        "Do you provide teeth cleaning services?",
        "Yes, we offer professional teeth cleaning to remove plaque, tartar, and stains while "
        "improving overall oral health.",
    ),
    FaqEntry(
        "Do you offer teeth whitening?",
        "Yes, we provide safe and effective professional teeth whitening treatments for a brighter smile.",
    ),
    FaqEntry(
        "Do you provide dental implants?",
        "Yes, we offer high-quality dental implants to replace missing teeth with durable and natural-looking results.",
    ),
    FaqEntry(
        "Do you provide braces or orthodontic treatment?",
        "Yes, we offer orthodontic treatments including braces to help align teeth and improve your smile.",
    ),
    FaqEntry(
        "Do you perform root canal treatment?",
        "Yes, we perform root canal treatments to save infected teeth and relieve pain.",
    ),
    FaqEntry(
        "Do you offer cosmetic dentistry?",
        "Yes, we provide cosmetic dentistry services such as veneers, smile makeovers, and aesthetic treatments.",
    ),
    # Pricing
    FaqEntry(
        "How much does a dental check-up cost?",
        "The cost of a dental check-up depends on the treatment required. Please contact us or "
        "book an appointment for detailed pricing information.",
    ),
    FaqEntry(
        "How much does teeth whitening cost?",
        "Teeth whitening costs vary depending on the treatment type. Please contact our clinic for a personalized quote.",
    ),
    FaqEntry(
        "Do you offer payment plans?",
        "Yes, we offer flexible payment options for selected treatments. Please speak with our staff for more details.",
    ),
    # Emergencies
    FaqEntry(
        "Do you handle dental emergencies?",
        "Yes, we handle dental emergencies such as severe tooth pain, broken teeth, and infections. "
        "Please call us immediately if you have an urgent issue.",
    ),
    FaqEntry(
        "What should I do if I have severe tooth pain?",
        "If you are experiencing severe tooth pain, please contact our clinic immediately. Avoid "
        "chewing on the affected side and seek professional care as soon as possible.",
    ),
    # Family
    FaqEntry(
        "Do you treat children?",
        "Yes, we provide dental care for children in a comfortable and friendly environment.",
    ),
    FaqEntry(
        "At what age should a child first visit the dentist?",
        "A child should visit the dentist by their first birthday or when their first tooth appears.",
    ),
    # Oral health
    FaqEntry(
        "How often should I visit the dentist?",
        "It is recommended to visit the dentist every 6 months for regular check-ups and cleanings.",
    ),
    FaqEntry(
        "How can I maintain good oral hygiene?",
        "Brush twice daily, floss regularly, avoid excessive sugar intake, and schedule routine dental check-ups.",
    ),
)


def normalize(text: str) -> str:
    return text.lower().strip()


def keywords(text: str) -> list[str]:
    """Words of ``text`` minus punctuation and stopwords, in order."""
    words = (_PUNCTUATION_RE.sub("", word) for word in text.split())
    return [w for w in words if w and w not in STOPWORDS]


def similarity(message: str, question: str) -> float:
    """Share of the message's keywords that overlap (substring either way) a question keyword."""
    s1 = normalize(message)
    s2 = normalize(question)
    if s1 == s2:
        return 1.0
    message_keywords = keywords(s1)
    question_keywords = keywords(s2)
    if not message_keywords or not question_keywords:
        return 0.0
    common = sum(
        1 for k in message_keywords if any(k in qk or qk in k for qk in question_keywords)
    )
    return common / len(message_keywords)


class FaqResponder:
    def __init__(
        self,
        catalogue: Sequence[FaqEntry] = FAQS,
        threshold: float = MATCH_THRESHOLD,
        fallback: str = DEFAULT_FALLBACK,
    ) -> None:
        self.catalogue = tuple(catalogue)
        self.threshold = threshold
        self.fallback = fallback

    def respond(self, message: str) -> FaqAnswer:
        best: FaqEntry | None = None
        best_score = 0.0
        for entry in self.catalogue:
            score = similarity(message, entry.question)
            # Strict comparison: on ties the earlier catalogue entry wins
            if score > best_score:
                best, best_score = entry, score
        if best is not None and best_score >= self.threshold:
            return FaqAnswer(answer=best.answer, matched_question=best.question, score=best_score)
        return FaqAnswer(answer=self.fallback, matched_question=None, score=best_score)
