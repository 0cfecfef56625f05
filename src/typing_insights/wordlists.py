"""Static word tables for drills and test text. Loaded once at import."""

from types import MappingProxyType
from typing import Tuple

BASIC_WORDS = (
    "the", "be", "to", "of", "and", "a", "in", "that", "have", "i",
    "it", "for", "not", "on", "with", "he", "as", "you", "do", "at",
    "this", "but", "his", "by", "from", "they", "we", "say", "her", "she",
    "or", "an", "will", "my", "one", "all", "would", "there", "their", "what",
    "so", "up", "out", "if", "about", "who", "get", "which", "go", "me",
    "when", "make", "can", "like", "time", "no", "just", "him", "know", "take",
    "people", "into", "year", "your", "good", "some", "could", "them", "see", "other",
    "than", "then", "now", "look", "only", "come", "its", "over", "think", "also",
    "back", "after", "use", "two", "how", "our", "work", "first", "well", "way",
    "even", "new", "want", "because", "any", "these", "give", "day", "most", "us",
)

MEDIUM_WORDS = BASIC_WORDS + (
    "computer", "keyboard", "website", "internet", "application", "software",
    "technology", "programming", "development", "system", "database", "network",
    "security", "function", "variable", "algorithm", "data", "structure",
    "science", "research", "analysis", "design", "project", "management",
    "business", "company", "service", "product", "customer", "experience",
    "process", "information", "education", "knowledge",
    "learning", "practice", "improvement", "performance", "efficiency",
    "accuracy", "speed", "typing", "master", "skill", "ability", "expert",
)

ADVANCED_WORDS = MEDIUM_WORDS + (
    "sophisticated", "comprehensive", "methodology", "implementation",
    "optimization", "architecture", "infrastructure", "integration",
    "configuration", "compatibility", "functionality", "reliability",
    "scalability", "maintainability", "usability", "accessibility",
    "effectiveness", "productivity", "innovation", "collaboration",
    "coordination", "communication", "documentation", "specification",
    "requirement", "validation", "verification", "authentication",
    "authorization", "encryption", "decryption", "transmission",
    "reception", "processing",
)

NIGHTMARE_WORDS = ADVANCED_WORDS + (
    "differentiation", "interdisciplinary", "electroencephalograph", "immunoelectrophoresis",
    "counterrevolutionary", "psychophysicist", "hypercoagulability", "interdenominationalism",
    "compartmentalization", "electroluminescent", "phosphorescence", "magnetohydrodynamic",
    "counterintelligence", "hypersensitivity", "tetraiodophenolphthalein", "dimethylpolysiloxane",
    "deinstitutionalization", "electrocardiographically", "interdisciplinarity",
    "electromyographically", "decompartmentalization", "immunocytochemistry",
    "electroencephalography", "psychoneuroendocrinology", "chemoautotrophic",
)

DIFFICULTY_POOLS = MappingProxyType(
    {
        "easy": BASIC_WORDS,
        "medium": MEDIUM_WORDS,
        "hard": ADVANCED_WORDS,
        "nightmare": NIGHTMARE_WORDS,
    }
)

# Balanced pool used when no weakness profile exists
COMMON_WORDS = MEDIUM_WORDS

NEUTRAL_WORDS = (
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "had",
    "her", "was", "one", "our", "out", "day", "get", "has", "him", "his",
    "how", "its", "may", "new", "now", "old", "see", "two", "who", "boy",
    "did", "man", "men", "run", "too", "any", "big", "eat", "hot", "red",
)

KEY_WORDS = MappingProxyType(
    {
        "q": ("queen", "quick", "quit", "quote", "quack", "quest", "quiz", "quip", "squeeze", "acquire", "require", "equip"),
        "w": ("water", "with", "work", "want", "will", "what", "when", "well", "week", "wonder", "world", "write"),
        "e": ("enter", "every", "even", "else", "were", "here", "been", "seen", "between", "eleven", "welcome", "exercise"),
        "r": ("right", "read", "real", "room", "run", "are", "very", "return", "research", "prepare", "remember", "arrange"),
        "t": ("time", "take", "that", "this", "think", "text", "start", "street", "attempt", "interest", "protect", "satisfy"),
        "y": ("you", "year", "yes", "your", "why", "say", "day", "young", "yellow", "anything", "suddenly", "happy"),
        "u": ("use", "under", "up", "run", "cut", "but", "fun", "sun", "music", "student", "study", "annual"),
        "i": ("into", "will", "with", "time", "like", "is", "in", "information", "initiative", "individual", "initial", "efficient"),
        "o": ("one", "only", "over", "open", "out", "do", "go", "color", "doctor", "monitor", "common", "follow"),
        "p": ("people", "part", "play", "put", "top", "help", "type", "hope", "copy", "property", "process", "approach"),
        "a": ("and", "that", "have", "can", "all", "last", "each", "make", "always", "application", "advanced", "database"),
        "s": ("some", "this", "also", "us", "as", "has", "was", "series", "system", "session", "assistant", "establish"),
        "d": ("data", "date", "day", "add", "had", "old", "did", "need", "describe", "develop", "address", "decide"),
        "f": ("from", "first", "find", "for", "form", "off", "of", "after", "free", "family", "perform", "function"),
        "g": ("get", "go", "great", "give", "group", "game", "big", "dog", "egg", "long", "language", "strategy"),
        "h": ("have", "with", "this", "when", "where", "think", "high", "help", "health", "history", "through", "enhance"),
        "j": ("job", "join", "just", "jump", "journey", "joke", "judge", "major", "adjacent", "object", "project", "inject"),
        "k": ("know", "key", "kind", "make", "look", "work", "take", "back", "book", "knowledge", "package", "keyboard"),
        "l": ("like", "will", "all", "well", "also", "call", "tell", "feel", "small", "local", "legal", "actually"),
        "z": ("zero", "zone", "size", "amazing", "quiz", "lazy", "blaze", "frozen", "maze", "prize", "analyze", "optimize"),
        "x": ("text", "tax", "box", "six", "fix", "example", "exact", "taxi", "index", "complex", "excellent", "exchange"),
        "c": ("can", "could", "come", "case", "city", "class", "care", "call", "place", "once", "calculate", "capacity"),
        "v": ("very", "value", "view", "voice", "give", "have", "leave", "five", "seven", "live", "achieve", "vivid"),
        "b": ("be", "but", "by", "about", "before", "both", "because", "big", "best", "better", "balance", "budget"),
        "n": ("not", "can", "know", "new", "then", "man", "one", "ten", "own", "environment", "connection", "conclusion"),
        "m": ("more", "my", "me", "make", "man", "some", "time", "come", "home", "name", "moment", "memory"),
    }
)

BIGRAM_WORDS = MappingProxyType(
    {
        "th": ("the", "this", "that", "with", "they", "think", "thank", "thing", "thumb", "thick", "another", "through"),
        "he": ("the", "he", "her", "here", "help", "head", "held", "whether", "health", "heavy", "hello", "hence"),
        "in": ("in", "into", "find", "kind", "mind", "begin", "think", "within", "include", "since", "origin", "mention"),
        "er": ("her", "were", "other", "water", "river", "never", "letter", "paper", "tiger", "flower", "register", "officer"),
        "an": ("and", "can", "man", "hand", "land", "plan", "bank", "sand", "animal", "annual", "ancient", "balance"),
        "re": ("are", "red", "read", "real", "write", "ready", "refer", "reply", "research", "return", "result", "reduce"),
        "nd": ("and", "hand", "land", "send", "find", "wind", "mind", "kind", "around", "command", "demand", "understand"),
        "at": ("at", "that", "what", "cat", "hat", "bat", "rat", "data", "later", "advantage", "calculate", "activate"),
        "on": ("on", "one", "don", "ton", "song", "long", "onto", "upon", "online", "continue", "condition", "operation"),
        "nt": ("into", "tent", "want", "sent", "point", "center", "dental", "content", "important", "attention", "extent", "department"),
    }
)


def key_fallback_words(key: str) -> Tuple[str, ...]:
    """Deterministic drill words for a key missing from KEY_WORDS."""
    return (key * 4, key * 3 + "a", key + "a" + key + "a", key + "e", key + "o")


def bigram_fallback_words(bigram: str) -> Tuple[str, ...]:
    """Deterministic drill words for a bigram missing from BIGRAM_WORDS."""
    return tuple(bigram + suffix for suffix in ("er", "ing", "ed", "able", "y", "tion"))


def has_whitespace(text: str) -> bool:
    return any(c.isspace() for c in text)


def _typeable(words: Tuple[str, ...]) -> Tuple[str, ...]:
    return tuple(w for w in words if w and not has_whitespace(w))


def words_for_key(key: str) -> Tuple[str, ...]:
    """Drill words for a key; empty when the key cannot appear inside a word."""
    key = key.lower()
    return _typeable(KEY_WORDS.get(key) or key_fallback_words(key))


def words_for_bigram(bigram: str) -> Tuple[str, ...]:
    bigram = bigram.lower()
    return _typeable(BIGRAM_WORDS.get(bigram) or bigram_fallback_words(bigram))
