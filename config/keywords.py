"""
Keyword tables for language detection, issue classification and escalation.

Raw tables are plain per-language dictionaries so translators can edit them.
Components never read them directly: `get_keyword_tables()` freezes them once
into a `KeywordTables` instance which is injected where needed.
"""

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Mapping, Tuple

from config.settings import DEFAULT_LANGUAGE

# Unicode script ranges, checked in order. One character is enough.
SCRIPT_RANGES = [
    ("hindi", "\u0900", "\u097F"),      # Devanagari
    ("telugu", "\u0C00", "\u0C7F"),
    ("tamil", "\u0B80", "\u0BFF"),
    ("bengali", "\u0980", "\u09FF"),
    ("gujarati", "\u0A80", "\u0AFF"),
    ("kannada", "\u0C80", "\u0CFF"),
    ("malayalam", "\u0D00", "\u0D7F"),
    ("punjabi", "\u0A00", "\u0A7F"),    # Gurmukhi
    ("urdu", "\u0600", "\u06FF"),       # Arabic
    ("odia", "\u0B00", "\u0B7F"),
]

# Romanized words; a language needs at least two distinct hits
ROMANIZED_WORDS = {
    "hindi": [
        "kya", "hai", "nahi", "nahin", "mera", "meri", "mujhe", "paisa", "paise",
        "kab", "kaise", "kyun", "kyu", "abhi", "aap", "hua", "gaya", "raha",
        "karo", "kijiye", "bhai", "jama", "nikasi", "aaya",
    ],
    "telugu": [
        "naaku", "nenu", "meeru", "ledu", "raledu", "enti", "ela", "emaindi",
        "cheyyandi", "cheppandi", "dabbulu", "undi", "avvaledu", "kavali", "ippudu",
    ],
}

COMMON_ENGLISH_WORDS = [
    "the", "is", "are", "my", "i", "you", "me", "to", "and", "not", "what", "how",
    "when", "where", "why", "please", "help", "hello", "hi", "money", "can", "do",
]

CATEGORY_ORDER = [
    "deposit",
    "withdrawal",
    "account",
    "bonus",
    "technical",
    "complaint",
    "responsible_gaming",
]

CATEGORY_KEYWORDS = {
    "english": {
        "deposit": ["deposit", "recharge", "top up", "topup", "add money", "added money"],
        "withdrawal": ["withdrawal", "withdraw", "payout", "cash out", "cashout", "redeem"],
        "account": ["account", "login", "log in", "password", "kyc", "verification", "profile", "bank details"],
        "bonus": ["bonus", "promo", "cashback", "reward", "free spin", "wagering", "rebate"],
        "technical": ["technical", "error", "bug", "glitch", "not working", "not loading", "stuck", "freez"],
        "complaint": ["complaint", "complain", "unfair", "rigged", "disappointed", "unacceptable"],
        "responsible_gaming": [
            "addiction", "addicted", "self-exclusion", "self exclusion", "gambling problem",
            "take a break", "cooling off", "stop playing", "can't stop",
        ],
    },
    "hindi": {
        "deposit": ["जमा", "डिपॉजिट", "रिचार्ज", "deposit", "jama", "recharge"],
        "withdrawal": ["निकासी", "विड्रॉ", "निकाल", "withdraw", "nikasi"],
        "account": ["खाता", "अकाउंट", "लॉगिन", "पासवर्ड", "account", "khata", "login"],
        "bonus": ["बोनस", "इनाम", "कैशबैक", "bonus"],
        "technical": ["त्रुटि", "एरर", "काम नहीं कर", "तकनीकी", "बग", "error", "bug"],
        "complaint": ["शिकायत", "बेईमानी", "shikayat", "complaint"],
        "responsible_gaming": ["लत", "खेलना बंद", "आदत", "addiction"],
    },
    "telugu": {
        "deposit": ["జమ", "డిపాజిట్", "రీఛార్జ్", "deposit", "jama"],
        "withdrawal": ["ఉపసంహరణ", "విత్‌డ్రా", "withdraw"],
        "account": ["ఖాతా", "అకౌంట్", "లాగిన్", "account"],
        "bonus": ["బోనస్", "bonus"],
        "technical": ["లోపం", "ఎర్రర్", "పని చేయడం లేదు", "error"],
        "complaint": ["ఫిర్యాదు", "complaint"],
        "responsible_gaming": ["వ్యసనం", "ఆడటం ఆపాలి", "addiction"],
    },
}

# Sub-intents, checked in listed order within a category
SUB_INTENT_KEYWORDS = {
    "english": {
        "deposit": {
            "fail": [
                "failed", "fail", "not received", "not credited", "not reflected",
                "missing", "pending", "deducted", "not added",
            ],
            "time": ["how long", "how much time", "when will", "when", "time"],
            "how": ["how to", "how do i", "how can i", "method"],
        },
        "withdrawal": {
            "fail": ["failed", "fail", "not received", "rejected", "pending", "missing", "not credited"],
            "time": ["how long", "how much time", "when will", "when", "time"],
        },
        "account": {
            "restrict": ["restricted", "locked", "blocked", "frozen", "disabled"],
            "update": ["update", "change", "edit", "bank details"],
        },
        "bonus": {
            "missing": ["not received", "missing", "didn't get", "did not get", "not credited"],
            "wagering": ["wagering", "rollover", "turnover", "requirement"],
        },
        "general": {
            "thanks": ["thank", "thx"],
        },
    },
    "hindi": {
        "deposit": {
            "fail": ["नहीं आया", "नहीं मिला", "फेल", "पेंडिंग", "कट गया", "nahi aaya", "failed", "pending"],
            "time": ["कब", "कितना समय", "kab", "how long"],
        },
        "withdrawal": {
            "fail": ["नहीं आया", "नहीं मिला", "फेल", "पेंडिंग", "nahi aaya", "failed", "pending"],
            "time": ["कब", "कितना समय", "kab"],
        },
        "general": {
            "thanks": ["धन्यवाद", "शुक्रिया", "dhanyavad", "shukriya", "thank"],
        },
    },
    "telugu": {
        "deposit": {
            "fail": ["రాలేదు", "ఫెయిల్", "పెండింగ్", "raledu", "failed", "pending"],
            "time": ["ఎప్పుడు", "ఎంత సమయం", "eppudu"],
        },
        "withdrawal": {
            "fail": ["రాలేదు", "ఫెయిల్", "పెండింగ్", "raledu", "failed"],
            "time": ["ఎప్పుడు", "ఎంత సమయం", "eppudu"],
        },
        "general": {
            "thanks": ["ధన్యవాదాలు", "thanks", "thank"],
        },
    },
}

ESCALATION_KEYWORDS = {
    "english": {
        "human_request": [
            "human", "real person", "live agent", "agent", "speak to someone", "talk to someone",
            "customer care", "manager", "supervisor",
        ],
        "legal_threat": ["lawyer", "lawsuit", "court", "legal action", "sue", "police", "consumer forum"],
        "payment_dispute": ["chargeback", "charge back", "fraud", "scam", "scammer", "stolen", "dispute"],
        "account_suspension": ["ban", "banned", "terminate", "terminated", "suspend", "suspended", "deactivated"],
        "system_failure": ["server", "database", "crash", "crashed", "outage", "system down", "down"],
    },
    "hindi": {
        "human_request": ["इंसान", "एजेंट", "मैनेजर", "insaan", "human", "agent"],
        "legal_threat": ["वकील", "कोर्ट", "अदालत", "मुकदमा", "पुलिस", "lawyer", "court"],
        "payment_dispute": ["धोखाधड़ी", "फ्रॉड", "चार्जबैक", "fraud", "scam"],
        "account_suspension": ["बैन", "प्रतिबंध", "बंद कर दिया", "ban", "banned"],
        "system_failure": ["सर्वर", "डेटाबेस", "क्रैश", "server", "crash"],
    },
    "telugu": {
        "human_request": ["మనిషి", "ఏజెంట్", "మేనేజర్", "human", "agent"],
        "legal_threat": ["న్యాయవాది", "కోర్టు", "పోలీసు", "lawyer", "court"],
        "payment_dispute": ["చార్జ్‌బ్యాక్", "ఫ్రాడ్", "fraud", "scam"],
        "account_suspension": ["నిషేధం", "బ్యాన్", "ban", "banned"],
        "system_failure": ["సర్వర్", "డేటాబేస్", "క్రాష్", "server", "crash"],
    },
}

ANGRY_KEYWORDS = {
    "english": [
        "angry", "frustrated", "frustrating", "furious", "annoyed", "upset", "fed up",
        "worst", "terrible", "horrible", "disgusting", "ridiculous",
    ],
    "hindi": ["गुस्सा", "नाराज", "परेशान", "बकवास", "gussa", "pareshan", "angry", "frustrated"],
    "telugu": ["కోపం", "చిరాకు", "నిరాశ", "kopam", "angry", "frustrated"],
}


def freeze_table(value: Any) -> Any:
    """Recursively turn dicts into read-only mappings and lists into tuples"""
    if isinstance(value, dict):
        return MappingProxyType({key: freeze_table(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_table(item) for item in value)
    return value


@dataclass(frozen=True)
class KeywordTables:
    """Immutable, language-indexed keyword configuration"""

    default_language: str
    script_ranges: Tuple[Tuple[str, str, str], ...]
    romanized_words: Mapping[str, Tuple[str, ...]]
    common_words: Tuple[str, ...]
    category_order: Tuple[str, ...]
    categories: Mapping[str, Mapping[str, Tuple[str, ...]]]
    sub_intents: Mapping[str, Mapping[str, Mapping[str, Tuple[str, ...]]]]
    escalation: Mapping[str, Mapping[str, Tuple[str, ...]]]
    angry: Mapping[str, Tuple[str, ...]]

    def _lookup(self, table: Mapping[str, Mapping[str, Any]], language: str, key: str):
        per_language = table.get(language, {})
        if key in per_language:
            return per_language[key]
        return table.get(self.default_language, {}).get(key, ())

    def category_keywords(self, language: str, category: str) -> Tuple[str, ...]:
        return self._lookup(self.categories, language, category)

    def sub_intent_keywords(self, language: str, category: str) -> Mapping[str, Tuple[str, ...]]:
        return self._lookup(self.sub_intents, language, category) or MappingProxyType({})

    def escalation_keywords(self, language: str, reason: str) -> Tuple[str, ...]:
        return self._lookup(self.escalation, language, reason)

    def angry_keywords(self, language: str) -> Tuple[str, ...]:
        if language in self.angry:
            return self.angry[language]
        return self.angry.get(self.default_language, ())


def build_keyword_tables(default_language: str = DEFAULT_LANGUAGE) -> KeywordTables:
    """Build a frozen copy of the keyword tables"""
    return KeywordTables(
        default_language=default_language,
        script_ranges=freeze_table(SCRIPT_RANGES),
        romanized_words=freeze_table(ROMANIZED_WORDS),
        common_words=freeze_table(COMMON_ENGLISH_WORDS),
        category_order=freeze_table(CATEGORY_ORDER),
        categories=freeze_table(CATEGORY_KEYWORDS),
        sub_intents=freeze_table(SUB_INTENT_KEYWORDS),
        escalation=freeze_table(ESCALATION_KEYWORDS),
        angry=freeze_table(ANGRY_KEYWORDS),
    )


@lru_cache(maxsize=1)
def get_keyword_tables() -> KeywordTables:
    """Keyword tables loaded once per process"""
    return build_keyword_tables()
