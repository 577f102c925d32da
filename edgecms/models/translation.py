"""
Translation models

Translations are keyed by (language, key). The optional section grouping
lives on the key, not on the individual per-locale translation.
"""

from sqlalchemy import Column, ForeignKey, Index, String, Text

from edgecms.database import Base


class TranslationKey(Base):
    __tablename__ = "translation_keys"

    key = Column(String(255), primary_key=True)
    section = Column(String(255), nullable=True)


class Translation(Base):
    __tablename__ = "translations"

    language = Column(
        String(35),
        ForeignKey("languages.locale", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    )
    key = Column(
        String(255),
        ForeignKey("translation_keys.key", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    )
    value = Column(Text, nullable=False)

    __table_args__ = (Index("idx_translations_key", "key"),)

    def __repr__(self) -> str:
        return f"<Translation(language='{self.language}', key='{self.key}')>"
