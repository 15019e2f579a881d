"""
Default categorisation patterns for the adaptive categoriser.
Seed keywords, expected amount bands, and weighted rules per spending category.
"""

# Spending categories (amounts compared as absolute values)
DEFAULT_CATEGORY_PATTERNS = {
    "Groceries": {
        "keywords": [
            "grocery", "market", "food", "produce", "walmart", "kroger",
            "safeway", "target", "costco", "whole foods", "trader joe"
        ],
        "amount_range": {"min": 10, "max": 500},
        "rules": [
            {"pattern": r"(?i)grocery|market|foods", "weight": 0.8},
            {"pattern": r"(?i)walmart|kroger|safeway|albertsons|target|costco", "weight": 0.9},
            {"pattern": r"(?i)whole foods|trader joe|fresh|organic", "weight": 0.85},
        ],
        "description": "Groceries & Supermarkets"
    },

    "Dining": {
        "keywords": [
            "restaurant", "cafe", "coffee", "pizza", "food", "diner",
            "grill", "kitchen", "bistro"
        ],
        "amount_range": {"min": 5, "max": 200},
        "rules": [
            {"pattern": r"(?i)restaurant|cafe|diner|grill|kitchen|bistro", "weight": 0.9},
            {"pattern": r"(?i)starbucks|mcdonald|subway|chipotle|panera|dunkin", "weight": 0.95},
            {"pattern": r"(?i)coffee|tea|donut|pizza|burger|sandwich", "weight": 0.8},
        ],
        "description": "Restaurants & Takeaway"
    },

    "Transportation": {
        "keywords": [
            "gas", "uber", "lyft", "taxi", "parking", "transit", "fuel",
            "shell", "chevron", "bp"
        ],
        "amount_range": {"min": 5, "max": 150},
        "rules": [
            {"pattern": r"(?i)gas station|fuel|petro|gasoline", "weight": 0.9},
            {"pattern": r"(?i)uber|lyft|taxi|transit|metro|bus", "weight": 0.95},
            {"pattern": r"(?i)shell|chevron|bp|exxon|mobil|valero", "weight": 0.9},
            {"pattern": r"(?i)parking|toll|bridge", "weight": 0.85},
        ],
        "description": "Fuel, Rides & Transit"
    },

    "Utilities": {
        "keywords": [
            "electric", "water", "gas", "internet", "phone", "utility",
            "cable", "power", "energy"
        ],
        "amount_range": {"min": 30, "max": 500},
        "rules": [
            {"pattern": r"(?i)electric|power|energy|edison", "weight": 0.9},
            {"pattern": r"(?i)water|sewer|utility|municipal", "weight": 0.9},
            {"pattern": r"(?i)comcast|verizon|at&t|spectrum|xfinity", "weight": 0.95},
            {"pattern": r"(?i)gas company|natural gas|heating", "weight": 0.85},
        ],
        "description": "Utilities & Telecoms"
    },

    "Healthcare": {
        "keywords": [
            "pharmacy", "doctor", "medical", "dental", "hospital", "clinic",
            "health", "rx", "medicine"
        ],
        "amount_range": {"min": 10, "max": 5000},
        "rules": [
            {"pattern": r"(?i)pharmacy|drug|rx|prescription", "weight": 0.9},
            {"pattern": r"(?i)medical|clinic|doctor|dental|hospital", "weight": 0.95},
            {"pattern": r"(?i)walgreens|cvs|rite aid|health", "weight": 0.9},
            {"pattern": r"(?i)lab|diagnostic|imaging|therapy", "weight": 0.85},
        ],
        "description": "Healthcare & Pharmacy"
    },

    "Entertainment": {
        "keywords": [
            "netflix", "spotify", "movie", "game", "music", "streaming",
            "theater", "concert"
        ],
        "amount_range": {"min": 5, "max": 100},
        "rules": [
            {"pattern": r"(?i)netflix|hulu|disney|hbo|streaming", "weight": 0.95},
            {"pattern": r"(?i)spotify|apple music|pandora|music", "weight": 0.9},
            {"pattern": r"(?i)movie|theater|cinema|concert", "weight": 0.85},
            {"pattern": r"(?i)game|xbox|playstation|steam", "weight": 0.9},
        ],
        "description": "Entertainment & Subscriptions"
    },

    "Shopping": {
        "keywords": [
            "amazon", "ebay", "online", "store", "shop", "retail", "purchase"
        ],
        "amount_range": {"min": 10, "max": 1000},
        "rules": [
            {"pattern": r"(?i)amazon|ebay|etsy|shopify", "weight": 0.95},
            {"pattern": r"(?i)store|shop|retail|mall|outlet", "weight": 0.8},
            {"pattern": r"(?i)clothing|apparel|shoes|accessories", "weight": 0.85},
            {"pattern": r"(?i)electronics|computer|phone|gadget", "weight": 0.85},
        ],
        "description": "General Shopping"
    },

    "Banking": {
        "keywords": [
            "fee", "charge", "transfer", "withdrawal", "deposit", "atm", "interest"
        ],
        "amount_range": {"min": 0, "max": 10000},
        "rules": [
            {"pattern": r"(?i)nsf|overdraft|fee|charge|penalty", "weight": 0.95},
            {"pattern": r"(?i)transfer|withdrawal|deposit|wire", "weight": 0.9},
            {"pattern": r"(?i)atm|cash|bank", "weight": 0.85},
            {"pattern": r"(?i)interest|dividend|credit", "weight": 0.9},
        ],
        "description": "Bank Fees & Transfers"
    },

    "Income": {
        "keywords": [
            "payroll", "salary", "deposit", "payment", "income", "wage"
        ],
        "amount_range": {"min": 100, "max": 50000},
        "rules": [
            {"pattern": r"(?i)payroll|salary|wage|pay", "weight": 0.95},
            {"pattern": r"(?i)direct deposit|dd|employer", "weight": 0.9},
            {"pattern": r"(?i)income|earnings|compensation", "weight": 0.85},
        ],
        "description": "Salary & Income"
    },
}


# Words ignored when extracting description keywords
STOP_WORDS = frozenset([
    "the", "and", "or", "at", "in", "on", "for", "to", "of", "a", "an",
    "with", "by", "from", "up", "about", "into", "through", "during",
])


# Ordered keyword heuristics used when ensemble scoring is unavailable.
# First match wins; min_amount applies to the keywords listed under "amount_keywords".
FALLBACK_KEYWORD_RULES = [
    {"category": "Groceries", "keywords": ["grocery", "food", "market"], "confidence": 0.6},
    {"category": "Transportation", "keywords": ["gas", "fuel", "uber", "lyft"], "confidence": 0.6},
    {"category": "Dining", "keywords": ["restaurant", "cafe", "coffee"], "confidence": 0.6},
    {"category": "Shopping", "keywords": ["amazon", "shop", "store"], "confidence": 0.6},
    {"category": "Banking", "keywords": ["fee", "charge", "atm"], "confidence": 0.6},
    {
        "category": "Income",
        "keywords": ["payroll", "salary"],
        "amount_keywords": ["deposit"],
        "min_amount": 500,
        "confidence": 0.7,
    },
]
