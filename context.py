"""
context.py - Process-wide settings for one live server.

Built once after the listening socket is bound and shared by reference with
the Flask app and the tornado handlers. Nothing in here changes afterwards.
"""

import ipaddress
from dataclasses import dataclass

from reload_hub import ReloadHub


UNSPECIFIED_HOSTS = ('', '0.0.0.0', '::')


@dataclass(frozen=True)
class ServerContext:
    root: str
    watch: bool
    host: str
    port: int
    hub: ReloadHub

    @property
    def address(self):
        """host:port advertised to browsers, or '' when bound to every interface."""
        if self.host in UNSPECIFIED_HOSTS:
            return ''
        return format_address(self.host, self.port)


def format_address(host, port):
    try:
        if ipaddress.ip_address(host).version == 6:
            return f'[{host}]:{port}'
    except ValueError:
        pass
    return f'{host}:{port}'
