from sqlalchemy.orm import Session

from praxis.models.user import User
from praxis.models.video import Video


def upsert_current(db: Session, subject: str) -> User:
    user = db.query(User).filter(User.subject == subject).first()
    if user:
        return user

    user = User(subject=subject)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def upsert_video(
    db: Session,
    *,
    youtube_id: str,
    title: str,
    url: str,
    channel: str,
    duration_ms: int | None = None,
    views: int | None = None,
    thumbnail_url: str | None = None,
) -> Video:
    video = db.query(Video).filter(Video.youtube_id == youtube_id).first()
    if video:
        return video

    video = Video(
        youtube_id=youtube_id,
        title=title,
        url=url,
        channel=channel,
        duration_ms=duration_ms,
        views=views,
        thumbnail_url=thumbnail_url,
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    return video
