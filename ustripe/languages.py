"""Map POSIX locale names to the locales Stripe accepts for customers."""

AUTO = "auto"

SUPPORTED_LANGUAGES = frozenset(
    {
        "bg", "cs", "da", "de", "el", "en",
        "es", "et", "fi", "fil", "fr", "hr",
        "hu", "id", "it", "ja", "ko", "lt",
        "lv", "ms", "mt", "nb", "nl", "pl",
        "pt", "ro", "ru", "sk", "sl", "sv",
        "th", "tr", "vi", "zh", "or",
    }
)

# Stripe distinguishes these regional variants
REGIONAL_LOCALES = {
    ("en", "GB"): "en-GB",
    ("fr", "CA"): "fr-CA",
    ("pt", "BR"): "pt-BR",
    ("zh", "HK"): "zh-HK",
    ("zh", "TW"): "zh-TW",
}


def normalize_language(value: str | None) -> str:
    """Normalize a locale such as "es_ES.UTF-8" to a Stripe locale.

    >>> normalize_language("es_ES.UTF-8")
    'es'
    >>> normalize_language("en_GB")
    'en-GB'
    >>> normalize_language("xx")
    'auto'
    """
    if not value:
        return AUTO

    # Drop the encoding and modifier: "es_ES.UTF-8@euro" -> "es_ES"
    locale = value.split(".", 1)[0].split("@", 1)[0]
    language, _, country = locale.replace("-", "_").partition("_")

    regional = REGIONAL_LOCALES.get((language, country))
    if regional:
        return regional
    if language in SUPPORTED_LANGUAGES:
        return language
    return AUTO
