"""
时间规范化服务

表单上的本地时间（UTC+8，无时区后缀）<-> 存储用的 naive UTC 时间点。
本地时区固定偏移，不考虑夏令时。
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from hoteltrack.config import settings
from hoteltrack.models.ontology import utcnow as utc_now  # noqa: F401

LOCAL_OFFSET = timedelta(hours=settings.LOCAL_UTC_OFFSET_HOURS)
LOCAL_TZ = timezone(LOCAL_OFFSET)

INPUT_FORMAT = "%Y-%m-%dT%H:%M"
DISPLAY_FORMAT = "%m/%d/%Y, %I:%M %p"


def parse_local(text: Optional[str]) -> Optional[datetime]:
    """
    解析本地时间字符串 "YYYY-MM-DDTHH:MM"（秒部分忽略）

    Returns:
        naive UTC 时间点；格式错误、非数字、日历上不存在或超出 datetime 范围的值返回 None
    """
    if not text:
        return None
    date_part, sep, time_part = text.strip().partition("T")
    if not sep or not date_part or not time_part:
        return None

    date_fields = date_part.split("-")
    time_fields = time_part.split(":")
    if len(date_fields) != 3 or len(time_fields) < 2:
        return None

    try:
        year, month, day = (int(x) for x in date_fields)
        hour, minute = int(time_fields[0]), int(time_fields[1])
        return datetime(year, month, day, hour, minute) - LOCAL_OFFSET
    except (ValueError, OverflowError):
        return None


def add_hours(instant: datetime, hours: int) -> datetime:
    """
    Raises:
        OverflowError: 结果（或其本地时间）超出 datetime 可表示范围
    """
    result = instant + timedelta(hours=hours)
    to_local(result)
    return result


def to_local(instant: datetime) -> datetime:
    """naive UTC -> 本地时区的 aware datetime"""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(LOCAL_TZ)


def format_display(instant: Optional[datetime]) -> str:
    """列表展示用，如 03/15/2026, 02:30 PM"""
    if instant is None:
        return "-"
    return to_local(instant).strftime(DISPLAY_FORMAT)


def format_input(instant: datetime) -> str:
    """编辑表单用，可被 parse_local 解析回来（精确到分钟）"""
    return to_local(instant).strftime(INPUT_FORMAT)
