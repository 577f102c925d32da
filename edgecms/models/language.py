from sqlalchemy import Boolean, Column, String

from edgecms.database import Base


class Language(Base):
    __tablename__ = "languages"

    locale = Column(String(35), primary_key=True)  # BCP 47 e.g. "en", "fr-CA"
    default = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Language(locale='{self.locale}', default={self.default})>"
