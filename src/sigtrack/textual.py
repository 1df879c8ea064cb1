"""Textual integration for sigtrack. Opt-in — requires textual.

Widgets become component observers: a widget's render reads signals inside
a RenderObserver, and any of those signals changing requests
widget.refresh(). Effects that touch widgets get the same guards.

Guard, NoMatches and thread-marshal handling live here, not at callsites;
core sigtrack stays host-agnostic.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from sigtrack.component import RenderObserver
from sigtrack.effect import Effect
from sigtrack.store import cleanup

# Module-owned pause state: keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend refresh requests and guarded effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def observer(app, widget, *, layout=False, recompose=False) -> RenderObserver:
    """RenderObserver that refreshes widget when a signal it rendered changes.

    Usage:
        class Counter(Static):
            def on_mount(self):
                self._observer = stx.observer(self.app, self)

            def render(self):
                return self._observer.render(lambda: f"Count: {count.value}")

            def on_unmount(self):
                self._observer.dispose()
    """
    _main = threading.get_ident()

    def _refresh():
        widget.refresh(layout=layout, recompose=recompose)

    def _request_render():
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_refresh)
        else:
            _refresh()

    render_observer = RenderObserver()
    render_observer.subscribe(_request_render)
    return render_observer


def effect(app, fn) -> Effect:
    """Effect that safely bridges to Textual widgets.

    Re-runs are skipped while the app is paused or not running. A skipped
    run keeps the subscription from the last run that happened, so the next
    change fires again. Changes from a background thread re-run the whole
    effect on the app thread via call_from_thread. NoMatches from widget
    queries is swallowed.

    An effect created before the app runs defers its first run with
    app.call_later, which Textual processes once the app is running.
    """
    _main = threading.get_ident()

    def _safe():
        try:
            fn()
        except NoMatches:
            pass

    def _run_if_safe(run):
        if is_safe(app):
            run()

    def _schedule(run):
        if threading.get_ident() != _main:
            app.call_from_thread(_run_if_safe, run)
        else:
            _run_if_safe(run)

    def _start():
        if is_safe(app):
            e.run()
        elif not e.disposed:
            app.call_later(_start)

    _safe.__name__ = getattr(fn, "__name__", "effect")
    e = Effect(_safe, _schedule)
    cleanup(e.dispose)
    _start()
    return e
