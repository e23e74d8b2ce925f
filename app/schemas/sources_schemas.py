from pydantic import BaseModel, ConfigDict


class ReferenceSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str          # unique across the static corpus and gathered pages
    title: str
    url: str
    content: str


class SourceListing(BaseModel):
    id: str
    title: str
    url: str
