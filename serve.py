#!/usr/bin/env python3
"""Live-reload dev server: serve a directory and reload browsers on change."""

import argparse
import asyncio
import errno
import logging
import os
import sys
import webbrowser
from concurrent.futures import ThreadPoolExecutor

from tornado.httpserver import HTTPServer
from tornado.ioloop import IOLoop
from tornado.netutil import bind_sockets
from tornado.web import Application, FallbackHandler
from tornado.wsgi import WSGIContainer

from app import create_app
from context import UNSPECIFIED_HOSTS, ServerContext, format_address
from paths import canonical_root
from reload_hub import ReloadHub, ReloadSocketHandler
from watcher import ChangeWatcher, WatcherStartFailure

logger = logging.getLogger(__name__)

MAX_PORT = 65535
ADDRESS_IN_USE = {errno.EADDRINUSE, getattr(errno, 'WSAEADDRINUSE', errno.EADDRINUSE)}


class BindFailure(OSError):
    pass


class InvalidRoot(ValueError):
    pass


def bind_with_retry(host, port):
    """Bind host:port, moving on to the next port while the address is taken."""
    while True:
        try:
            return bind_sockets(port, address=host or None)
        except OSError as e:
            if e.errno not in ADDRESS_IN_USE:
                logger.error('Failed to listen on %s: %s', format_address(host, port), e)
                raise BindFailure(e.errno, f'Failed to listen on {format_address(host, port)}: {e}') from e
            if port == 0 or port >= MAX_PORT:
                raise BindFailure(e.errno, f'No free port left from {format_address(host, port)}') from e
            logger.warning('Port %d is already in use', port)
            port += 1


def make_application(context, executor=None):
    wsgi = WSGIContainer(create_app(context), executor=executor)
    handlers = []
    if context.watch:
        handlers.append((r'/live-server-ws', ReloadSocketHandler, {'hub': context.hub}))
    handlers.append((r'.*', FallbackHandler, {'fallback': wsgi}))
    return Application(handlers, websocket_ping_interval=30)


class Listener:

    def __init__(self, context, sockets):
        self.context = context
        self.sockets = sockets
        self.watcher = None

    def link(self):
        """Address to open in a browser, like http://127.0.0.1:8000."""
        host = self.context.host
        if host in UNSPECIFIED_HOSTS:
            host = 'localhost'
        return f'http://{format_address(host, self.context.port)}'

    def start_watcher(self):
        if not self.context.watch:
            return None
        watcher = ChangeWatcher(self.context.root, self.context.hub)
        try:
            watcher.start()
        except WatcherStartFailure as e:
            logger.error('%s; serving without live reload', e)
            return None
        self.watcher = watcher
        return watcher

    async def serve(self, open_url_delay=None):
        executor = ThreadPoolExecutor(thread_name_prefix='live-server')
        server = HTTPServer(make_application(self.context, executor))
        server.add_sockets(self.sockets)
        self.start_watcher()

        if open_url_delay is not None:
            IOLoop.current().call_later(open_url_delay, webbrowser.open, self.link())

        try:
            await asyncio.Event().wait()
        finally:
            server.stop()
            if self.watcher is not None:
                self.watcher.stop()
            executor.shutdown(wait=False)

    def start(self, open_url_delay=None):
        asyncio.run(self.serve(open_url_delay))


def listen(host='127.0.0.1', port=8000, root='.', watch=True):
    """
    Bind the server and prepare everything it needs.

    Args:
        host: bind address; '' or 0.0.0.0 means every interface
        port: first port to try, later ones are tried while it is taken
        root: directory to serve
        watch: enable file watching and reload script injection
    """
    root_path = canonical_root(root)
    if not os.path.isdir(root_path):
        raise InvalidRoot(f'{root!r} is not a directory')

    sockets = bind_with_retry(host, port)
    bound_port = sockets[0].getsockname()[1]
    context = ServerContext(root=root_path, watch=watch, host=host, port=bound_port, hub=ReloadHub())

    listener = Listener(context, sockets)
    logger.info('Listening on %s/', listener.link())
    logger.info('Serving %s', root_path)
    return listener


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='live-server',
        description='Serve a directory and reload the browser when files change.',
    )
    parser.add_argument('root', nargs='?', default='.', help='directory to serve (default: .)')
    parser.add_argument('-p', '--port', type=int,
                        default=int(os.environ.get('LIVE_SERVER_PORT', '8000')),
                        help='first port to try (default: 8000)')
    parser.add_argument('-H', '--host', default=os.environ.get('LIVE_SERVER_HOST', '127.0.0.1'),
                        help='bind address (default: 127.0.0.1)')
    parser.add_argument('-n', '--no-watch', action='store_true', help='disable live reload')
    parser.add_argument('-o', '--open', action='store_true', help='open the page in a browser')
    parser.add_argument('-v', '--verbose', action='store_true', help='debug logging')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    if not args.verbose:
        logging.getLogger('tornado.access').setLevel(logging.WARNING)

    try:
        listener = listen(args.host, args.port, args.root, watch=not args.no_watch)
    except (BindFailure, InvalidRoot) as e:
        logger.error('%s', e)
        return 1

    print(f"Live server → {listener.link()}")
    try:
        listener.start(open_url_delay=1 if args.open else None)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
