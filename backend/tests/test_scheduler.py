import logging

from flask import Flask, current_app, has_app_context

from mathduel.services.games.scheduler import BackgroundScheduler, TimerHandle


class FakeSocketIO:
    """Queues background tasks and runs them on demand; sleeping is instant."""

    def __init__(self):
        self.tasks = []
        self.sleeps = []
        self.on_sleep = None

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append((target, args, kwargs))

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep()

    def run_tasks(self):
        while self.tasks:
            target, args, kwargs = self.tasks.pop(0)
            target(*args, **kwargs)


def _scheduler(app=None):
    sio = FakeSocketIO()
    return sio, BackgroundScheduler(sio, app)


def test_call_later_fires_once_with_its_handle():
    sio, scheduler = _scheduler()
    calls = []
    handle = scheduler.call_later(2, calls.append, name='advance:ROOM01')
    assert calls == []
    sio.run_tasks()
    assert calls == [handle]
    assert sio.sleeps == [2]


def test_handle_cancelled_before_the_delay_skips_the_callback():
    sio, scheduler = _scheduler()
    calls = []
    handle = scheduler.call_later(30, calls.append)
    handle.cancel()
    sio.run_tasks()
    assert calls == []


def test_handle_cancelled_while_sleeping_skips_the_callback():
    sio, scheduler = _scheduler()
    calls = []
    handle = scheduler.call_later(30, calls.append)
    sio.on_sleep = handle.cancel
    sio.run_tasks()
    assert calls == []
    assert handle.cancelled


def test_call_every_stops_when_callback_returns_false():
    sio, scheduler = _scheduler()
    results = iter([True, None, False, True])
    calls = []

    def tick(handle):
        calls.append(handle)
        return next(results)

    handle = scheduler.call_every(1, tick, name='clock:ROOM01')
    sio.run_tasks()
    assert len(calls) == 3
    assert sio.sleeps == [1, 1, 1]
    assert not handle.cancelled


def test_call_every_stops_once_cancelled():
    sio, scheduler = _scheduler()
    calls = []

    def tick(handle):
        calls.append(handle)
        if len(calls) == 2:
            handle.cancel()
        return True

    scheduler.call_every(1, tick)
    sio.run_tasks()
    assert len(calls) == 2


def test_raising_callback_cancels_its_handle_and_is_logged(caplog):
    sio, scheduler = _scheduler()
    calls = []

    def broken(handle):
        calls.append(handle)
        raise RuntimeError('boom')

    with caplog.at_level(logging.ERROR):
        handle = scheduler.call_every(1, broken, name='clock:ROOM01')
        sio.run_tasks()
    assert handle.cancelled
    assert len(calls) == 1
    assert '[timer-error] timer=clock:ROOM01' in caplog.text


def test_callbacks_run_inside_the_app_context():
    app = Flask(__name__)
    sio, scheduler = _scheduler(app)
    seen = []

    def check(handle):
        seen.append(has_app_context() and current_app._get_current_object() is app)

    scheduler.call_later(0, check)
    assert not has_app_context()
    sio.run_tasks()
    assert seen == [True]
    assert not has_app_context()


def test_callbacks_run_without_context_when_no_app_is_given():
    sio, scheduler = _scheduler()
    seen = []
    scheduler.call_later(0, lambda handle: seen.append(has_app_context()))
    sio.run_tasks()
    assert seen == [False]


def test_timer_handle_repr_shows_state():
    handle = TimerHandle('cleanup:ROOM01')
    assert repr(handle) == '<TimerHandle cleanup:ROOM01 cancelled=False>'
    handle.cancel()
    assert handle.cancelled
