"""Sample plugins and hooks shared by the test modules."""

from rewrite.dot_formatter import Claims
from rewrite.models import EventKind


class UpcasePlugin:
    """Upper-cases ``.md`` files and ``~M`` sigils."""

    name = "upcase"

    def __init__(self):
        self.seen_options = []

    def claims(self, options):
        return Claims(extensions=frozenset({".md"}), markers=frozenset({"M"}))

    def format(self, contents, options):
        self.seen_options.append(options)
        return contents.upper()


class ExclaimPlugin:
    """Appends ``!`` to ``.md`` files; claims given as a plain dict."""

    name = "exclaim"

    def claims(self, options):
        return {"extensions": {".md"}, "markers": set()}

    def format(self, contents, options):
        return contents.rstrip("\n") + "!\n"


class ExPlugin:
    """Takes over formatting of ``.ex`` files entirely."""

    name = "ex-plugin"

    def claims(self, options):
        return Claims(extensions=frozenset({".ex"}))

    def format(self, contents, options):
        return "# formatted by plugin\n" + contents


class UpdateHook:
    """Appends a trailing comment to every updated ``.ex`` source."""

    name = "UpdateHook"

    def __init__(self):
        self.events = []

    def handle(self, event, project):
        self.events.append(event)
        if event.kind not in (EventKind.UPDATED, EventKind.BATCH_UPDATED):
            return None
        for path in event.paths:
            if not path.endswith(".ex"):
                continue
            project = project.update(
                path,
                lambda s: s.update(
                    "content",
                    s.content + f"\n# {event.kind.value} - UpdateHook",
                    by="UpdateHook",
                ),
            )
        return project


class ConfigRewriteHook:
    """Rewrites ``.formatter.yml`` whenever a code source changes."""

    name = "ConfigRewriteHook"

    def __init__(self):
        self.events = []

    def handle(self, event, project):
        self.events.append(event)
        if event.kind is EventKind.NEW:
            return None
        if not any(path.endswith(".ex") for path in event.paths):
            return None
        return project.update(
            ".formatter.yml",
            lambda s: s.update(
                "content", s.content + "# touched\n", by="ConfigRewriteHook"
            ),
        )


class RecordingHook:
    """Records ``(label, event kind)`` into a shared list."""

    def __init__(self, label, log):
        self.name = label
        self.log = log

    def handle(self, event, project):
        self.log.append((self.name, event.kind))
        return None


class FailingHook:
    name = "FailingHook"

    def handle(self, event, project):
        if event.kind is EventKind.NEW:
            return None
        raise RuntimeError("boom")
