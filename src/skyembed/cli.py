import json

import click

from .config import build_settings
from .errors import UpstreamError


def _settings_from_ctx(ctx):
    overrides = {
        "appview": ctx.obj.get("appview"),
        "timeout": ctx.obj.get("timeout"),
        "ffmpeg": ctx.obj.get("ffmpeg"),
    }
    return build_settings({key: value for key, value in overrides.items() if value})


def _echo_json(payload):
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", is_flag=True, help="Log resolution steps to stderr.")
@click.option(
    "--appview",
    default=None,
    help="AppView base URL (overrides SKYEMBED_APPVIEW).",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Per-request timeout in seconds (overrides SKYEMBED_TIMEOUT).",
)
@click.option(
    "--ffmpeg",
    default=None,
    help="Path to the ffmpeg binary used for mosaics (overrides SKYEMBED_FFMPEG).",
)
@click.pass_context
def cli(ctx, verbose, appview, timeout, ffmpeg):
    """Bluesky link previews for chat clients."""
    from .runtime import set_verbose_logging

    ctx.ensure_object(dict)
    ctx.obj.update(
        {"verbose": verbose, "appview": appview, "timeout": timeout, "ffmpeg": ffmpeg}
    )
    set_verbose_logging(verbose)


@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", type=int, default=8080, show_default=True)
@click.pass_context
def serve_cmd(ctx, host, port):
    """Run the preview HTTP server."""
    from .server import create_app

    app = create_app(_settings_from_ctx(ctx), verbose=ctx.obj["verbose"])
    app.run(host=host, port=port, threaded=True)


@cli.command("resolve")
@click.argument("actor")
@click.pass_context
def resolve_cmd(ctx, actor):
    """
    Resolve a handle (or DID) to its DID, PDS and handle alias.
    Resolution never fails; an unresolvable handle is echoed back.
    """
    from .identity import handle_alias, resolve
    from .xrpc import build_client

    settings = _settings_from_ctx(ctx)
    identity = resolve(actor, client=build_client(settings), settings=settings)
    _echo_json(
        {
            "did": identity.canonical_id,
            "pds": identity.service_endpoint,
            "handle": handle_alias(identity.document),
        }
    )


@cli.command("inspect")
@click.argument("url")
@click.option(
    "--photo",
    "photo_num",
    default=None,
    help="1-based photo number for image posts.",
)
@click.pass_context
def inspect_cmd(ctx, url, photo_num):
    """
    Print the raw and normalized data behind a preview.
    Accepts bsky.app links and at:// URIs for posts, profiles, feeds,
    lists and starter packs.
    """
    from .pages import load_feed, load_list, load_pack, load_post, load_profile
    from .router import json_dump
    from .targets import parse_target
    from .xrpc import build_client

    target = parse_target(url)
    if target is None:
        raise click.BadParameter(f"Not a Bluesky link: {url}", param_hint="URL")
    settings = _settings_from_ctx(ctx)
    client = build_client(settings)
    try:
        if target.kind == "post":
            loaded = load_post(
                target.actor,
                target.rkey or "",
                client=client,
                settings=settings,
                photo_num=photo_num or target.photo_num,
            )
            _echo_json(json_dump(loaded))
            return
        if target.kind == "profile":
            page = load_profile(target.actor, client=client, settings=settings)
        else:
            loader = {
                "feed": load_feed,
                "list": load_list,
                "starter-pack": load_pack,
            }[target.kind]
            page = loader(
                target.actor, target.rkey or "", client=client, settings=settings
            )
    except UpstreamError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_json({"kind": page.kind, "did": page.identity.canonical_id, **page.data})


def main():
    cli()


if __name__ == "__main__":
    main()
