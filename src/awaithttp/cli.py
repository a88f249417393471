"""Command-line interface for awaithttp using Click."""

import asyncio
import logging
import sys
from typing import List, Optional, Tuple

import click
from tqdm import tqdm

from awaithttp import __version__
from awaithttp.config import Config
from awaithttp.exceptions import AwaitHttpError
from awaithttp.http.client import create_client
from awaithttp.http.cookies import CookieStore
from awaithttp.http.download import tqdm_progress


# Setup logging - default to WARNING to avoid interfering with progress bars
# INFO and DEBUG logs are only shown when --verbose is used
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _parse_pairs(values: Tuple[str, ...], separator: str, what: str) -> List[Tuple[str, str]]:
    pairs = []
    for value in values:
        if separator not in value:
            raise click.BadParameter(f"expected NAME{separator}VALUE, got {value!r}", param_hint=what)
        name, item = value.split(separator, 1)
        pairs.append((name.strip(), item.strip()))
    return pairs


def _run(ctx: click.Context, operation):
    """Run `operation(client)` in a fresh client context, then save cookies."""
    async def runner():
        async with create_client(ctx.obj['config']) as client:
            try:
                return await operation(client)
            finally:
                client.save_cookies()

    try:
        return asyncio.run(runner())
    except AwaitHttpError as e:
        click.echo(f"✗ Failed: {e}", err=True)
        sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--version', '-v', is_flag=True, help='Show version and exit')
@click.option('--cookie-file', help='Path to cookie file (JSON, created if missing)')
@click.option('--header-file', help='Path to header file')
@click.option('--timeout', default=30.0, help='Request timeout in seconds')
@click.option('--proxy', help='HTTP/HTTPS proxy')
@click.option('--user-agent', '-U', help='Custom user agent')
@click.option('--no-ssl-verify', is_flag=True, help='Disable SSL verification')
@click.option('--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, version, cookie_file, header_file, timeout, proxy, user_agent, no_ssl_verify, verbose):
    """awaithttp - Awaitable HTTP requests with persistent cookies."""
    if version:
        click.echo(f"awaithttp version {__version__}")
        ctx.exit()

    # Enable verbose logging if requested
    if verbose:
        logging.getLogger().setLevel(logging.INFO)
        # Also enable httpx logging
        logging.getLogger('httpx').setLevel(logging.INFO)

    try:
        config = Config(
            cookie_file=cookie_file,
            header_file=header_file,
            timeout=timeout,
            proxy=proxy,
            verify_ssl=not no_ssl_verify,
        )
    except AwaitHttpError as e:
        click.echo(f"✗ Invalid configuration: {e}", err=True)
        sys.exit(2)

    if user_agent:
        config.user_agent = user_agent

    ctx.obj = {'config': config}

    # If no subcommand, show help
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument('url')
@click.option('--header', '-H', multiple=True, help='Request header "Name: value"')
@click.option('--status', is_flag=True, help='Print the status code and never fail on it')
@click.pass_context
def get(ctx, url: str, header: Tuple[str, ...], status: bool):
    """GET a URL and print the body.

    Example:
        awaithttp get https://example.com -H "Accept: text/html"
    """
    headers = _parse_pairs(header, ':', '--header')
    if status:
        code, body = _run(ctx, lambda client: client.get_code(url, headers))
        click.echo(f"HTTP {code}", err=True)
    else:
        body = _run(ctx, lambda client: client.get(url, headers))
    click.echo(body)


@cli.command()
@click.argument('url')
@click.option('--header', '-H', multiple=True, help='Request header "Name: value"')
@click.pass_context
def head(ctx, url: str, header: Tuple[str, ...]):
    """HEAD a URL and print the response headers."""
    headers = _parse_pairs(header, ':', '--header')
    response_headers = _run(ctx, lambda client: client.head(url, headers))
    for name, value in response_headers.multi_items():
        click.echo(f"{name}: {value}")


@cli.command()
@click.argument('url')
@click.option('--header', '-H', multiple=True, help='Request header "Name: value"')
@click.option('--field', '-f', multiple=True, help='Form field "name=value"')
@click.option('--data', '-d', help='Raw request body')
@click.option('--file', 'file_path', type=click.Path(exists=True, dir_okay=False), help='Stream the body from a file')
@click.option('--type', 'media_type', help='Content-Type for --data or --file')
@click.pass_context
def post(ctx, url: str, header: Tuple[str, ...], field: Tuple[str, ...], data: Optional[str],
         file_path: Optional[str], media_type: Optional[str]):
    """POST a form, raw body or file to a URL and print the response.

    Example:
        awaithttp post https://example.com/login -f user=me -f password=secret
    """
    headers = _parse_pairs(header, ':', '--header')
    form = dict(_parse_pairs(field, '=', '--field')) if field else None
    if sum(option is not None for option in (form, data, file_path)) > 1:
        raise click.UsageError("Use only one of --field, --data or --file")

    async def send(client):
        if file_path:
            with open(file_path, 'rb') as stream:
                return await client.post_code(url, headers, stream=stream, media_type=media_type)
        return await client.post_code(url, headers, form=form, content=data, media_type=media_type)

    code, body = _run(ctx, send)
    click.echo(f"HTTP {code}", err=True)
    click.echo(body)
    if not 200 <= code < 300:
        sys.exit(1)


@cli.command()
@click.argument('url')
@click.option('--header', '-H', multiple=True, help='Request header "Name: value"')
@click.pass_context
def delete(ctx, url: str, header: Tuple[str, ...]):
    """DELETE a URL and print the response."""
    headers = _parse_pairs(header, ':', '--header')
    code, body = _run(ctx, lambda client: client.delete_code(url, headers))
    click.echo(f"HTTP {code}", err=True)
    click.echo(body)
    if not 200 <= code < 300:
        sys.exit(1)


@cli.command()
@click.argument('url')
@click.option('--output', '-o', required=True, type=click.Path(dir_okay=False), help='Destination file')
@click.option('--header', '-H', multiple=True, help='Request header "Name: value"')
@click.option('--no-progress', is_flag=True, help='Hide the progress bar')
@click.pass_context
def download(ctx, url: str, output: str, header: Tuple[str, ...], no_progress: bool):
    """Download a URL to a file.

    Example:
        awaithttp download https://example.com/book.pdf -o ./book.pdf
    """
    headers = _parse_pairs(header, ':', '--header')

    async def fetch(client):
        with tqdm(desc="Downloading", unit="B", unit_scale=True, disable=no_progress) as bar:
            return await client.download_to_file(output, url, headers, tqdm_progress(bar))

    path = _run(ctx, fetch)
    click.echo(f"✓ Saved to {path}")


@cli.group()
def cookies():
    """Inspect or clear the cookie file."""


def _open_store(ctx: click.Context) -> CookieStore:
    cookie_file = ctx.obj['config'].cookie_file or str(Config.default_cookie_file())
    try:
        return CookieStore.open(cookie_file)
    except AwaitHttpError as e:
        click.echo(f"✗ Failed: {e}", err=True)
        sys.exit(1)


@cookies.command(name='list')
@click.pass_context
def list_cookies(ctx):
    """List stored cookies."""
    store = _open_store(ctx)
    uris = sorted(store.all_uris())
    for uri in uris:
        click.echo(uri)
        for record in store.get(uri):
            click.echo(f"  {record.name}={record.value}  (domain={record.domain}, path={record.path})")
    click.echo()
    click.echo(f"Total: {len(store)} cookie(s) for {len(uris)} URI(s)")


@cookies.command(name='clear')
@click.pass_context
def clear_cookies(ctx):
    """Remove every stored cookie."""
    store = _open_store(ctx)
    store.remove_all()
    store.save()
    click.echo(f"✓ Cleared {store.cookie_file}")


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == '__main__':
    main()
