from pydantic import BaseModel, Field


class RefineRequest(BaseModel):
    text: str = Field(min_length=1, max_length=5000)
    category: str = Field(default="general", max_length=100)


class TextRequest(BaseModel):
    text: str = Field(min_length=1, max_length=5000)


class AiTextResponse(BaseModel):
    text: str
