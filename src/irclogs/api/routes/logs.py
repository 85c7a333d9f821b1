"""
Log browsing endpoints: channel listing and raw daily logs.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from irclogs.api.dependencies import Channels
from irclogs.api.middleware.exception_handlers import (
    ChannelNotFoundError,
    LogFileNotFoundError,
    LogFileUnreadableError,
)
from irclogs.core.constants import DATE_LENGTH
from irclogs.core.exceptions import ChannelError
from irclogs.models.schemas import ChannelInfo, ChannelListResponse
from irclogs.utils.log_files import read_log_file

router = APIRouter()


@router.get(
    "/api/channels",
    response_model=ChannelListResponse,
    summary="List channels",
    description="Every discovered channel with its date range and number of logs.",
    tags=["Logs"],
)
def list_channels(channels: Channels) -> ChannelListResponse:
    infos = []
    for channel in channels.iter_channels():
        dates = channel.dates()
        infos.append(
            ChannelInfo(
                path=channel.path,
                public=channel.is_public,
                first_date=dates[0] if dates else None,
                last_date=dates[-1] if dates else None,
                files=len(dates),
            )
        )
    return ChannelListResponse(channels=infos)


@router.get(
    "/raw/{channel_path:path}/{date}",
    response_class=PlainTextResponse,
    summary="Raw log",
    description="One day of a channel's log as plain text. Compressed logs are decoded.",
    tags=["Logs"],
)
def raw_log(channel_path: str, date: str, channels: Channels) -> PlainTextResponse:
    try:
        channel = channels.resolve(channel_path)
    except ChannelError as e:
        raise ChannelNotFoundError(channel_path, cause=e) from e

    path = channel.log_path(date) if len(date) == DATE_LENGTH else None
    if path is None:
        raise LogFileNotFoundError(channel_path, date)
    try:
        content = read_log_file(path)
    except OSError as e:
        raise LogFileUnreadableError(channel_path, date, cause=e) from e
    return PlainTextResponse(content)
