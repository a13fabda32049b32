from fastapi import Request

from .services.engine import PlaybackEngine


def get_engine(request: Request) -> PlaybackEngine:
    return request.app.state.engine
