"""Translation tables."""
from pos.i18n.translations import TRANSLATIONS, DEFAULT_LANGUAGE, translate, Translator

__all__ = ['TRANSLATIONS', 'DEFAULT_LANGUAGE', 'translate', 'Translator']
