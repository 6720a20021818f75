from __future__ import annotations

import logging
from typing import Any, Callable

from flask import (
    Flask,
    Response,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)
from markupsafe import Markup, escape

from . import xrpc
from .config import Settings, build_settings
from .errors import CompositorError, OEmbedError, RouteError, UpstreamError
from .oembed import build_oembed
from .pages import load_feed, load_list, load_pack, load_post, load_profile
from .router import (
    ByteStream,
    JsonPayload,
    Redirect,
    RenderPayload,
    mode_from_host,
    route,
)
from .runtime import reset_verbose_logging, set_verbose_logging

logger = logging.getLogger(__name__)


def _nl2br(value: str) -> Markup:
    return escape(value or "").replace("\n", Markup("<br>"))


def _is_telegram() -> bool:
    return "Telegram" in (request.headers.get("User-Agent") or "")


def create_app(
    settings: Settings | None = None,
    *,
    client_factory: Callable[[Settings], Any] | None = None,
    verbose: bool = False,
) -> Flask:
    effective = settings if settings is not None else build_settings()
    make_client = client_factory or xrpc.build_client

    app = Flask(__name__)
    app.config["SKYEMBED_SETTINGS"] = effective
    app.config["SKYEMBED_VERBOSE"] = verbose
    app.jinja_env.filters["nl2br"] = _nl2br

    @app.before_request
    def _bind_request() -> None:
        g.verbose_token = set_verbose_logging(app.config["SKYEMBED_VERBOSE"])
        g.client = make_client(effective)

    @app.teardown_request
    def _unbind_request(exc: BaseException | None) -> None:
        token = g.pop("verbose_token", None)
        if token is not None:
            reset_verbose_logging(token)

    @app.errorhandler(UpstreamError)
    @app.errorhandler(RouteError)
    def _error_page(exc: UpstreamError | RouteError) -> str:
        return render_template("error.html", error_message=str(exc))

    @app.errorhandler(CompositorError)
    def _compositor_error(exc: CompositorError) -> Response:
        logger.warning("mosaic failed: %s", exc)
        return Response(str(exc), status=500, mimetype="text/plain")

    @app.errorhandler(OEmbedError)
    def _oembed_error(exc: OEmbedError) -> Response:
        return Response(str(exc), status=500, mimetype="text/plain")

    @app.errorhandler(404)
    def _not_found(exc: Exception) -> tuple[str, int]:
        return render_template("error.html", error_message="route not found"), 404

    @app.get("/")
    def index() -> Response:
        return redirect(effective.index_redirect, code=302)

    @app.get("/profile/<profile_id>")
    def profile(profile_id: str) -> str:
        page = load_profile(profile_id, client=g.client, settings=effective)
        return render_template(
            "profile.html",
            profile=page.data,
            did=page.identity.canonical_id,
            is_telegram=_is_telegram(),
            oembed_url=url_for(
                "oembed",
                _external=True,
                **{
                    "for": "profile",
                    "followers": page.data.get("followersCount") or 0,
                    "follows": page.data.get("followsCount") or 0,
                    "posts": page.data.get("postsCount") or 0,
                    "labeler": bool(
                        (page.data.get("associated") or {}).get("labeler")
                    ),
                },
            ),
        )

    @app.get("/profile/<profile_id>/post/<post_id>")
    @app.get("/profile/<profile_id>/post/<post_id>/photo/<photo_num>")
    def post(profile_id: str, post_id: str, photo_num: str | None = None) -> Any:
        loaded = load_post(
            profile_id,
            post_id,
            client=g.client,
            settings=effective,
            photo_num=photo_num,
        )
        result = route(mode_from_host(request.host), loaded, ffmpeg=effective.ffmpeg)
        if isinstance(result, Redirect):
            return redirect(result.url, code=302)
        if isinstance(result, ByteStream):
            return Response(result.stream, mimetype=result.content_type)
        if isinstance(result, JsonPayload):
            return jsonify(result.payload)
        return _render_post(result)

    def _render_post(result: RenderPayload) -> str:
        thread_post = result.post.thread.post
        author = result.post.author
        return render_template(
            "post.html",
            data=result.post,
            title=f"{author.name} (@{author.handle})",
            post_url=(
                f"https://bsky.app/profile/{result.post.identity.canonical_id}"
                f"/post/{result.post_id}"
            ),
            embed=result.embed,
            description=result.description,
            post_id=result.post_id,
            media_message=result.media_message,
            is_telegram=_is_telegram(),
            oembed_url=url_for(
                "oembed",
                _external=True,
                **{
                    "for": "post",
                    "replies": thread_post.reply_count,
                    "reposts": thread_post.repost_count,
                    "likes": thread_post.like_count,
                    "quotes": thread_post.quote_count,
                    "description": result.description,
                    "mediaMsg": result.media_message,
                },
            ),
        )

    @app.get("/profile/<profile_id>/feed/<feed_id>")
    def feed(profile_id: str, feed_id: str) -> str:
        page = load_feed(profile_id, feed_id, client=g.client, settings=effective)
        return render_template(
            "feed.html",
            feed=page.data["view"],
            feed_id=page.record_id,
            did=page.identity.canonical_id,
            is_telegram=_is_telegram(),
            oembed_url=url_for(
                "oembed",
                _external=True,
                **{
                    "for": "feed",
                    "likes": page.data["view"].get("likeCount") or 0,
                    "online": page.data["isOnline"],
                    "valid": page.data["isValid"],
                },
            ),
        )

    @app.get("/profile/<profile_id>/lists/<list_id>")
    def list_page(profile_id: str, list_id: str) -> str:
        page = load_list(profile_id, list_id, client=g.client, settings=effective)
        return render_template(
            "list.html",
            list=page.data,
            list_id=page.record_id,
            did=page.identity.canonical_id,
            is_telegram=_is_telegram(),
        )

    @app.get("/starter-pack/<profile_id>/<pack_id>")
    def pack(profile_id: str, pack_id: str) -> str:
        page = load_pack(profile_id, pack_id, client=g.client, settings=effective)
        return render_template(
            "pack.html",
            pack=page.data,
            pack_id=page.record_id,
            did=page.identity.canonical_id,
            is_telegram=_is_telegram(),
        )

    @app.get("/oembed")
    def oembed() -> Response:
        return jsonify(
            build_oembed(
                request.args,
                provider_name=effective.provider_name,
                provider_url=effective.provider_url,
            )
        )

    return app
