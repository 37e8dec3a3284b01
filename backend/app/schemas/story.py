from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StoryOut(BaseModel):
    name: str
    job_title: str
    location: str
    story: str
    posted_date: datetime
    image_url: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
