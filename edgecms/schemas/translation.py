from pydantic import BaseModel, ConfigDict, Field


class LanguageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    locale: str
    default: bool


class LanguageCreate(BaseModel):
    locale: str = Field(..., min_length=2, max_length=35, pattern=r"^[A-Za-z]{2,3}([-_][A-Za-z0-9]{2,8})*$")


class TranslationUpsert(BaseModel):
    key: str = Field(..., min_length=1, max_length=255)
    language: str
    value: str
    section: str | None = None


class TranslationOut(BaseModel):
    key: str
    language: str
    value: str


class TranslationPush(BaseModel):
    translations: dict[str, str]
    section: str | None = None


class TranslationPushResult(BaseModel):
    language: str
    count: int
