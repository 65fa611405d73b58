"""
listing.py - HTML index for directories that have no index.html.

Children are listed one level deep, directories first, and rendered through
the autoescaping listing template in assets.py.
"""

import logging
import os
import stat
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from assets import render_template
from paths import url_path

logger = logging.getLogger(__name__)


SIZE_UNITS = ['B', 'KB', 'MB', 'GB', 'TB', 'PB', 'EB', 'ZB', 'YB']


class EntryKind(Enum):
    # (sort rank, icon under /_live-server/, css class)
    DIRECTORY = (0, 'dir.svg', 'dir')
    DIRECTORY_SYMLINK = (1, 'dir_link.svg', 'dir-link')
    FILE = (2, 'file.svg', 'file')
    FILE_SYMLINK = (3, 'file_link.svg', 'file-link')
    OTHER = (4, 'unknown.svg', 'unknown')

    def __init__(self, rank, icon, css_class):
        self.rank = rank
        self.icon = icon
        self.css_class = css_class

    @property
    def is_dir(self):
        return self in (EntryKind.DIRECTORY, EntryKind.DIRECTORY_SYMLINK)

    @property
    def has_size(self):
        return self in (EntryKind.FILE, EntryKind.FILE_SYMLINK)


@dataclass
class DirectoryEntry:
    name: str
    kind: EntryKind
    href: str
    size: str = ''
    modified: str = ''


def classify(path):
    """Kind of `path`, following a symlink one level to its target."""
    try:
        mode = os.lstat(path).st_mode
    except OSError:
        return EntryKind.OTHER

    if stat.S_ISLNK(mode):
        try:
            target = os.stat(path).st_mode
        except OSError:
            # Dangling link
            return EntryKind.OTHER
        if stat.S_ISDIR(target):
            return EntryKind.DIRECTORY_SYMLINK
        if stat.S_ISREG(target):
            return EntryKind.FILE_SYMLINK
        return EntryKind.OTHER

    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def _trim_float(value):
    return f'{value:.2f}'.rstrip('0').rstrip('.')


def format_size(num_bytes):
    """
    Human readable size in 1024-based units.

    >>> format_size(1536)
    '1.5 KB'
    """
    if num_bytes <= 0:
        return '0 B'

    exp = 0
    while exp < len(SIZE_UNITS) - 1 and num_bytes >= 1024 ** (exp + 1):
        exp += 1
    return f'{_trim_float(num_bytes / 1024 ** exp)} {SIZE_UNITS[exp]}'


def format_time(timestamp):
    moment = datetime.fromtimestamp(timestamp)
    # Unpadded day of month, strftime has no portable directive for it
    return f'{moment:%b} {moment.day} {moment:%Y %H:%M:%S}'


def display_name(name):
    """Printable form of a file name, undecodable bytes become U+FFFD."""
    return os.fsencode(name).decode('utf-8', 'replace')


def scan(directory, root):
    """
    List the direct children of `directory`.

    Entries are sorted by kind only. Within one kind the order is whatever
    os.scandir yields, names are not re-sorted.
    """
    entries = []
    with os.scandir(directory) as it:
        for child in it:
            kind = classify(child.path)
            entry = DirectoryEntry(
                name=display_name(child.name),
                kind=kind,
                href=url_path(child.path, root),
            )
            try:
                info = os.stat(child.path)
            except OSError:
                logger.debug('No metadata for %s', child.path)
            else:
                if kind.has_size:
                    entry.size = format_size(info.st_size)
                entry.modified = format_time(info.st_mtime)
            entries.append(entry)

    # list.sort is stable, equal ranks keep their scan order
    entries.sort(key=lambda entry: entry.kind.rank)
    return entries


def directory_label(directory, root):
    relative = os.path.relpath(directory, root)
    if relative == os.curdir:
        return '/'
    return '/' + display_name(relative.replace(os.sep, '/')) + '/'


def render(root, directory):
    """
    Build the listing page for `directory`.

    Args:
        root: canonical served root
        directory: canonical directory below (or equal to) root
    """
    return render_template(
        'listing.html',
        directory=directory_label(directory, root),
        entries=scan(directory, root),
    )
