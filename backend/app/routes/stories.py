from datetime import datetime, timezone

from fastapi import APIRouter

from app.schemas.story import StoryOut

router = APIRouter(tags=["stories"])

_IMAGE_PARAMS = "?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=1"

SUCCESS_STORIES = (
    {
        "name": "Alice Johnson",
        "job_title": "Web Developer",
        "location": "San Francisco, CA",
        "story": "Alice found her dream job and has been making impactful contributions to her company's product.",
        "image_url": "https://images.pexels.com/photos/762080/pexels-photo-762080.jpeg" + _IMAGE_PARAMS,
    },
    {
        "name": "Michael Smith",
        "job_title": "Data Analyst",
        "location": "New York, NY",
        "story": "Michael's passion for data helped him secure a position where he now leads a team of analysts.",
        "image_url": "https://images.pexels.com/photos/819530/pexels-photo-819530.jpeg" + _IMAGE_PARAMS,
    },
    {
        "name": "Anthony Bloom",
        "job_title": "Graphic Designer",
        "location": "Austin, TX",
        "story": "Anthony's creativity caught the eye of an advertising agency. He now works internationally.",
        "image_url": "https://images.pexels.com/photos/2102416/pexels-photo-2102416.jpeg" + _IMAGE_PARAMS,
    },
)


@router.get("/api/storyEntries", response_model=list[StoryOut])
def list_stories():
    # Static showcase data; postedDate is always "now".
    now = datetime.now(timezone.utc)
    return [StoryOut(posted_date=now, **story) for story in SUCCESS_STORIES]
