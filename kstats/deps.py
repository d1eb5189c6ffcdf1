"""FastAPI dependencies for the process-wide store and cache handles."""
from fastapi import Request
from fastapi.templating import Jinja2Templates
import redis
from kstats.cache import ChannelCache
from kstats.models import Database


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_redis(request: Request) -> redis.Redis:
    return request.app.state.redis


def get_channel_cache(request: Request) -> ChannelCache:
    return request.app.state.channel_cache


def get_templates(request: Request) -> Jinja2Templates:
    return request.app.state.templates
