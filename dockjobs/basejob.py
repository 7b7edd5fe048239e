"""
Generic job base
Observable unit of asynchronous work driven by the Qt event loop
"""

import logging
from enum import Enum, IntEnum, IntFlag
from typing import Dict, Optional

from PyQt6.QtCore import QObject, QEventLoop, QTimer, pyqtSignal

from .exceptions import ErrorCode, JobStateError, error_message

logger = logging.getLogger(__name__)

# Jobs that were started are kept alive here until they finish, so callers
# do not have to hold a reference to fire-and-forget jobs.
_active_jobs = set()


class Unit(IntEnum):
    """Units of measure for progress amounts"""
    BYTES = 0
    FILES = 1
    DIRECTORIES = 2
    ITEMS = 3


class Capability(IntFlag):
    NONE = 0
    KILLABLE = 1
    SUSPENDABLE = 2


class KillVerbosity(Enum):
    QUIETLY = 'quietly'
    EMIT_RESULT = 'emit_result'


class JobState(Enum):
    NOT_STARTED = 'not_started'
    RUNNING = 'running'
    SUSPENDED = 'suspended'
    FINISHED = 'finished'


class BaseJob(QObject):
    """
    Base class for all jobs

    A job is created stopped, started with start() or exec() and finishes
    exactly once. Subclasses implement start() and call emit_result() when
    their work is done, after setting an error with set_error() if it failed.

    Signals:
        finished(job): emitted exactly once for every job
        result(job): emitted after finished unless the job was killed quietly
        info_message(job, text): state information for the user
        description(job, title, field): what the job does, field is an
            optional (name, value) tuple
    """
    finished = pyqtSignal(object)
    result = pyqtSignal(object)
    info_message = pyqtSignal(object, str)
    description = pyqtSignal(object, str, object)
    suspended = pyqtSignal(object)
    resumed = pyqtSignal(object)
    processed_amount_changed = pyqtSignal(object, object, object)
    total_amount_changed = pyqtSignal(object, object, object)
    percent_changed = pyqtSignal(object, int)
    speed = pyqtSignal(object, object)

    SPEED_TIMEOUT_MS = 5000

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._error = ErrorCode.NO_ERROR
        self._error_text = ''
        self._capabilities = Capability.NONE
        self._auto_delete = True
        self._started = False
        self._is_suspended = False
        self._finished = False
        self._progress_unit = Unit.BYTES
        self._processed: Dict[Unit, int] = {}
        self._total: Dict[Unit, int] = {}
        self._percent = 0
        self._speed_timer: Optional[QTimer] = None
        self._event_loop: Optional[QEventLoop] = None

    def start(self):
        """Start the job, has to lead to emit_result() eventually"""
        raise NotImplementedError

    def _mark_started(self):
        if self._started:
            raise JobStateError(f"{self!r} has already been started")
        self._started = True
        _active_jobs.add(self)

    # Lifecycle

    def exec(self) -> bool:
        """
        Run the job and block until it has finished

        Only the events needed to complete the job are processed, user
        input events are held back while waiting.

        Returns:
            True if the job finished without error
        """
        if self._finished:
            raise JobStateError(f"exec() called on finished job {self!r}")
        if self._event_loop is not None:
            raise JobStateError(f"exec() is already running for {self!r}")

        # finishing would schedule the deletion inside our own loop
        was_auto_delete = self._auto_delete
        self._auto_delete = False

        loop = QEventLoop(self)
        self._event_loop = loop
        try:
            self.start()
            if not self._finished:
                loop.exec(QEventLoop.ProcessEventsFlag.ExcludeUserInputEvents)
        finally:
            self._event_loop = None
            self._auto_delete = was_auto_delete

        if was_auto_delete:
            self.deleteLater()

        return self._error == ErrorCode.NO_ERROR

    def kill(self, verbosity: KillVerbosity = KillVerbosity.QUIETLY) -> bool:
        """
        Abort the job

        Args:
            verbosity: QUIETLY only emits finished, EMIT_RESULT also emits result

        Returns:
            True if the job is finished afterwards
        """
        if self._finished:
            return True

        if not self._do_kill():
            return False

        # _do_kill() is allowed to finish the job itself
        if not self._finished:
            self.set_error(ErrorCode.KILLED)
            self.finish_job(verbosity != KillVerbosity.QUIETLY)
        return True

    def suspend(self) -> bool:
        if not self._is_suspended and self._do_suspend():
            self._is_suspended = True
            self.suspended.emit(self)
            return True
        return False

    def resume(self) -> bool:
        if self._is_suspended and self._do_resume():
            self._is_suspended = False
            self.resumed.emit(self)
            return True
        return False

    def _do_kill(self) -> bool:
        return False

    def _do_suspend(self) -> bool:
        return False

    def _do_resume(self) -> bool:
        return False

    def finish_job(self, emit_result: bool = True):
        """
        Move the job into its terminal state

        Args:
            emit_result: Emit result after finished
        """
        if self._finished:
            raise JobStateError(f"{self!r} has already been finished")
        self._finished = True

        if self._event_loop is not None:
            self._event_loop.quit()

        self.finished.emit(self)
        if emit_result:
            self.result.emit(self)

        _active_jobs.discard(self)
        if self._auto_delete:
            self.deleteLater()

    def emit_result(self):
        """Finish the job and emit result, does nothing if already finished"""
        if not self._finished:
            self.finish_job(True)

    def dispose(self):
        """
        Destroy the job

        A job that did not finish yet ends with the KILLED error and still
        emits finished once, result is never emitted on this path.
        """
        if not self._finished:
            self._finished = True
            self.set_error(ErrorCode.KILLED)
            if self._event_loop is not None:
                self._event_loop.quit()
            logger.debug(f"Disposing unfinished job {self!r}")
            self.finished.emit(self)
        _active_jobs.discard(self)
        self.deleteLater()

    # State

    @property
    def state(self) -> JobState:
        if self._finished:
            return JobState.FINISHED
        if self._is_suspended:
            return JobState.SUSPENDED
        if self._started:
            return JobState.RUNNING
        return JobState.NOT_STARTED

    def is_finished(self) -> bool:
        return self._finished

    def is_suspended(self) -> bool:
        return self._is_suspended

    def capabilities(self) -> Capability:
        return self._capabilities

    def set_capabilities(self, capabilities: Capability):
        self._capabilities = capabilities

    def is_auto_delete(self) -> bool:
        return self._auto_delete

    def set_auto_delete(self, auto_delete: bool):
        self._auto_delete = auto_delete

    # Errors

    def error(self) -> int:
        return self._error

    def error_text(self) -> str:
        return self._error_text

    def error_string(self) -> str:
        """Human readable error message, empty if there is no error"""
        return error_message(self._error, self._error_text)

    def set_error(self, code: int, text: str = ''):
        self._error = code
        self._error_text = text

    # Progress

    def progress_unit(self) -> Unit:
        return self._progress_unit

    def set_progress_unit(self, unit: Unit):
        self._progress_unit = unit

    def processed_amount(self, unit: Unit) -> int:
        return self._processed.get(unit, 0)

    def total_amount(self, unit: Unit) -> int:
        return self._total.get(unit, 0)

    def percent(self) -> int:
        return self._percent

    def set_processed_amount(self, unit: Unit, amount: int):
        if self._processed.get(unit, 0) == amount:
            return
        self._processed[unit] = amount
        self.processed_amount_changed.emit(self, unit, amount)
        if unit == self._progress_unit:
            self._emit_percent(amount, self._total.get(unit, 0))

    def set_total_amount(self, unit: Unit, amount: int):
        if self._total.get(unit, 0) == amount:
            return
        self._total[unit] = amount
        self.total_amount_changed.emit(self, unit, amount)
        if unit == self._progress_unit:
            self._emit_percent(self._processed.get(unit, 0), amount)

    def set_percent(self, percent: int):
        if self._percent != percent:
            self._percent = percent
            self.percent_changed.emit(self, percent)

    def _emit_percent(self, processed: int, total: int):
        if total:
            self.set_percent(int(100.0 * processed / total))

    def emit_speed(self, value: int):
        """Report the current speed, it drops back to 0 when no update follows"""
        if self._speed_timer is None:
            self._speed_timer = QTimer(self)
            self._speed_timer.setSingleShot(True)
            self._speed_timer.timeout.connect(self._speed_timeout)
        self.speed.emit(self, value)
        self._speed_timer.start(self.SPEED_TIMEOUT_MS)

    def _speed_timeout(self):
        self.speed.emit(self, 0)

    def __repr__(self):
        return f"<{type(self).__name__}: {self.state.value}>"
