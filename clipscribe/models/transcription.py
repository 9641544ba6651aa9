from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class TranscriptionRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: Optional[str] = Field(default=None, description="URL do vídeo ou áudio a transcrever")
    callback_url: Optional[str] = Field(default=None, description="Webhook chamado quando o job terminar")


class TranscriptionResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str
    job_id: str
    url: str
    message: str
