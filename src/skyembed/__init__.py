def preview_post(actor: str, rkey: str, *, photo_num: str | None = None) -> dict:
    from .config import build_settings
    from .pages import load_post
    from .router import json_dump
    from .xrpc import build_client

    settings = build_settings()
    loaded = load_post(
        actor,
        rkey,
        client=build_client(settings),
        settings=settings,
        photo_num=photo_num,
    )
    return json_dump(loaded)


def create_app(**kwargs):
    from .server import create_app as _create_app

    return _create_app(**kwargs)
