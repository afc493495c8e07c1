# ch_core/local_cache/management/commands/local_cache.py
from __future__ import annotations

import json

from django.core.cache.backends.filebased import FileBasedCache
from django.core.management.base import BaseCommand, CommandError

from ch_core.local_cache.store import default_cache


class Command(BaseCommand):
    help = "Inspect or clear the file-backed local checklist cache (LOCAL_CACHE_DIR)."

    def add_arguments(self, parser):
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument("--list", action="store_true", help="List stored keys.")
        group.add_argument("--show", metavar="KEY", help="Print the JSON value of KEY.")
        group.add_argument("--clear", metavar="KEY", help="Delete KEY.")

    def handle(self, *args, **opts):
        cache = default_cache()
        # A separate process cannot see another process's memory cache.
        if not isinstance(cache.backend, FileBasedCache):
            raise CommandError("The local cache is held in process memory. Set LOCAL_CACHE_DIR to inspect it.")

        if opts["list"]:
            for key in cache.keys():
                self.stdout.write(key)
            return

        if opts["show"]:
            value = cache.get_json(opts["show"])
            if value is None:
                raise CommandError(f"No value stored under {opts['show']!r}.")
            self.stdout.write(json.dumps(value, indent=2, sort_keys=True))
            return

        cache.delete(opts["clear"])
        self.stdout.write(self.style.SUCCESS(f"Cleared {opts['clear']}."))
