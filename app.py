from flask import Flask, Response, request
from werkzeug.http import HTTP_STATUS_CODES
import errno
import logging
import mimetypes
import os
import posixpath

from assets import get_public, render_template
from listing import render as render_listing
from paths import PathEscapesRoot, resolve

logger = logging.getLogger(__name__)

# Pinned so responses do not depend on the interpreter's mimetypes table
MIME_OVERRIDES = {
    '.js': 'application/javascript',
    '.mjs': 'application/javascript',
    '.ico': 'image/x-icon',
    '.json': 'application/json',
    '.svg': 'image/svg+xml',
    '.wasm': 'application/wasm',
    '.md': 'text/markdown',
}

ENCODING_TYPES = {
    'gzip': 'application/gzip',
    'bzip2': 'application/x-bzip2',
    'xz': 'application/x-xz',
    'br': 'application/x-brotli',
    'compress': 'application/x-compress',
}

_mimetypes = mimetypes.MimeTypes()
for _ext, _mime in MIME_OVERRIDES.items():
    _mimetypes.add_type(_mime, _ext)


def guess_mime(path):
    mime, encoding = _mimetypes.guess_type(path, strict=False)
    if encoding:
        return ENCODING_TYPES.get(encoding, 'application/octet-stream')
    return mime or 'text/plain'


def inject_reload_script(context, html):
    if not context.watch:
        return html
    return html + render_template('reload.html', address=context.address)


def error_response(context, status, request_path, mime):
    """
    HTML-negotiated errors get a small page (reload-capable in watch mode),
    anything else an empty body that still carries the guessed type.
    """
    if mime != 'text/html':
        return Response(b'', status=status, content_type=mime)
    page = render_template(
        'error.html',
        status=status,
        reason=HTTP_STATUS_CODES.get(status, ''),
        path=request_path,
    )
    return Response(inject_reload_script(context, page), status=status, content_type='text/html')


def internal_error(message):
    return Response(f'500 Internal Server Error\n{message}\n', status=500, content_type='text/plain')


def serve_path(context, request_path):
    """Response for a GET of `request_path` below the served root."""
    target = resolve(request_path, context.root)

    if os.path.isdir(target):
        index = os.path.join(target, 'index.html')
        if not os.path.isfile(index):
            try:
                page = render_listing(context.root, target)
            except OSError as e:
                logger.error('Failed to list %s: %s', target, e)
                return internal_error('Failed to list directory')
            return Response(inject_reload_script(context, page), content_type='text/html')
        # index.html itself may be a symlink leaving the root
        target = resolve(posixpath.join(request_path, 'index.html'), context.root)

    mime = guess_mime(target)

    try:
        with open(target, 'rb') as f:
            body = f.read()
    except (FileNotFoundError, NotADirectoryError):
        logger.info('Not found: %s', request_path)
        return error_response(context, 404, request_path, mime)
    except OSError as e:
        if e.errno == errno.ENAMETOOLONG:
            logger.info('Not found: %s', request_path)
            return error_response(context, 404, request_path, mime)
        logger.error('Failed to read %s: %s', target, e)
        return internal_error('Failed to read file')

    if mime == 'text/html':
        try:
            text = body.decode('utf-8')
        except UnicodeDecodeError as e:
            logger.error('%s is not valid UTF-8: %s', target, e)
            return internal_error('HTML file is not valid UTF-8')
        body = inject_reload_script(context, text).encode('utf-8')

    return Response(body, status=200, content_type=mime)


def create_app(context):
    app = Flask(__name__, static_folder=None)
    app.config['LIVE_SERVER'] = context

    @app.route("/", defaults={'path': ''})
    @app.route("/<path:path>")
    def static_files(path):
        return serve_path(context, '/' + path)

    @app.route("/_live-server/<path:name>")
    def public_dir(name):
        found = get_public(name)
        if found is None:
            return Response(b'', status=404, content_type=guess_mime(name))
        mime, body = found
        return Response(body, content_type=mime)

    @app.errorhandler(PathEscapesRoot)
    def path_escapes_root(e):
        logger.warning('Refused %s from %s: %s', request.path, request.remote_addr, e)
        return error_response(context, 403, request.path, guess_mime(request.path))

    return app
