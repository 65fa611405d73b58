"""
assets.py - Built-in files served under /_live-server/ and the HTML templates.

Everything here is a fixed lookup table; nothing is read from disk.
"""

from jinja2 import DictLoader, Environment


INDEX_CSS = """\
* { box-sizing: border-box; }
body {
  margin: 0;
  padding: 2rem;
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
  color: #24292f;
  background: #fff;
}
h1 {
  margin: 0 0 1rem;
  font-size: 1.25rem;
  font-weight: 600;
  word-break: break-all;
}
table { width: 100%; border-collapse: collapse; }
th, td { padding: 0.4rem 0.75rem; text-align: left; }
th { font-weight: 600; border-bottom: 1px solid #d0d7de; }
tr:hover td { background: #f6f8fa; }
td.icon { width: 1.5rem; padding-right: 0; }
td.icon img { width: 16px; height: 16px; vertical-align: middle; }
td.size, td.modified { color: #57606a; white-space: nowrap; }
td.size { text-align: right; }
a { color: #0969da; text-decoration: none; }
a:hover { text-decoration: underline; }
"""

DIR_SVG = """\
<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 16 16" width="16" height="16">\
<path fill="#54aeff" d="M1.75 1A1.75 1.75 0 0 0 0 2.75v10.5C0 14.22.78 15 1.75 15h12.5A1.75 1.75 0 0 0 \
16 13.25v-8.5A1.75 1.75 0 0 0 14.25 3H7.5a.25.25 0 0 1-.2-.1l-.9-1.2C6.07 1.26 5.55 1 5 1H1.75Z"/></svg>
"""

DIR_LINK_SVG = """\
<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 16 16" width="16" height="16">\
<path fill="#54aeff" d="M1.75 1A1.75 1.75 0 0 0 0 2.75v10.5C0 14.22.78 15 1.75 15h12.5A1.75 1.75 0 0 0 \
16 13.25v-8.5A1.75 1.75 0 0 0 14.25 3H7.5a.25.25 0 0 1-.2-.1l-.9-1.2C6.07 1.26 5.55 1 5 1H1.75Z"/>\
<path fill="#fff" d="M8.5 6h3v3h-1V7.7l-3.15 3.15-.7-.7L9.8 7H8.5V6Z"/></svg>
"""

FILE_SVG = """\
<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 16 16" width="16" height="16">\
<path fill="#57606a" d="M2 1.75C2 .78 2.78 0 3.75 0h6.59c.46 0 .9.18 1.23.51l2.92 2.92c.33.33.51.77.51 \
1.23v9.59A1.75 1.75 0 0 1 13.25 16h-9.5A1.75 1.75 0 0 1 2 14.25Zm1.75-.25a.25.25 0 0 0-.25.25v12.5c0 \
.14.11.25.25.25h9.5a.25.25 0 0 0 .25-.25V6h-2.75A1.75 1.75 0 0 1 9 4.25V1.5Z"/></svg>
"""

FILE_LINK_SVG = """\
<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 16 16" width="16" height="16">\
<path fill="#57606a" d="M2 1.75C2 .78 2.78 0 3.75 0h6.59c.46 0 .9.18 1.23.51l2.92 2.92c.33.33.51.77.51 \
1.23v9.59A1.75 1.75 0 0 1 13.25 16h-9.5A1.75 1.75 0 0 1 2 14.25Zm1.75-.25a.25.25 0 0 0-.25.25v12.5c0 \
.14.11.25.25.25h9.5a.25.25 0 0 0 .25-.25V6h-2.75A1.75 1.75 0 0 1 9 4.25V1.5Z"/>\
<path fill="#57606a" d="M6.5 8h3v3h-1V9.7l-2.15 2.15-.7-.7L7.8 9H6.5V8Z"/></svg>
"""

UNKNOWN_SVG = """\
<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 16 16" width="16" height="16">\
<circle cx="8" cy="8" r="7" fill="none" stroke="#8c959f" stroke-width="1.5"/>\
<path fill="#8c959f" d="M7.25 11h1.5v1.5h-1.5ZM8 3.5c1.52 0 2.75 1.06 2.75 2.5 0 1.12-.7 1.7-1.3 2.08-.44.28-.7.47-.7.92v.5h-1.5V9c0 \
-1.2.74-1.72 1.3-2.08.43-.27.7-.46.7-.92 0-.6-.57-1-1.25-1s-1.25.4-1.25 1h-1.5c0-1.44 1.23-2.5 2.75-2.5Z"/></svg>
"""

# name -> (mime type, content)
PUBLIC = {
    'index.css': ('text/css', INDEX_CSS),
    'dir.svg': ('image/svg+xml', DIR_SVG),
    'dir_link.svg': ('image/svg+xml', DIR_LINK_SVG),
    'file.svg': ('image/svg+xml', FILE_SVG),
    'file_link.svg': ('image/svg+xml', FILE_LINK_SVG),
    'unknown.svg': ('image/svg+xml', UNKNOWN_SVG),
}


LISTING_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Index of {{ directory }}</title>
<link rel="stylesheet" href="/_live-server/index.css">
</head>
<body>
<h1>Index of {{ directory }}</h1>
<table>
<thead><tr><th></th><th>Name</th><th>Size</th><th>Last modified</th></tr></thead>
<tbody>
{% for entry in entries %}\
<tr class="{{ entry.kind.css_class }}">\
<td class="icon"><img src="/_live-server/{{ entry.kind.icon }}" alt=""></td>\
<td class="name"><a href="{{ entry.href }}">{{ entry.name }}</a></td>\
<td class="size">{{ entry.size }}</td>\
<td class="modified">{{ entry.modified }}</td>\
</tr>
{% endfor %}\
</tbody>
</table>
</body>
</html>
"""

ERROR_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ status }} {{ reason }}</title>
<link rel="stylesheet" href="/_live-server/index.css">
</head>
<body>
<h1>{{ status }} {{ reason }}</h1>
<p>{{ path }}</p>
</body>
</html>
"""

# Appended to HTML responses in watch mode. `address` is host:port of the
# bound server, or empty when the page's own origin should be used.
RELOAD_SCRIPT = """\
<script>
(function () {
  var address = {{ address|tojson }} || window.location.host;
  var socket = new WebSocket("ws://" + address + "/live-server-ws");
  socket.onmessage = function () {
    window.location.reload();
  };
})();
</script>
"""

TEMPLATES = {
    'listing.html': LISTING_HTML,
    'error.html': ERROR_HTML,
    'reload.html': RELOAD_SCRIPT,
}


def get_public(name):
    """Return (mime type, bytes) for a built-in asset, or None."""
    found = PUBLIC.get(name)
    if found is None:
        return None
    mime, content = found
    return mime, content.encode('utf-8')


jinja_env = Environment(loader=DictLoader(TEMPLATES), autoescape=True)


def render_template(name, **context):
    return jinja_env.get_template(name).render(**context)
