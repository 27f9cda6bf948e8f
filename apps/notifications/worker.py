import logging
import queue
import threading
import time

from django.conf import settings

from .mailer import send_email

logger = logging.getLogger(__name__)


class EmailWorker:
    """
    Background email sender.

    Jobs go onto an in-memory queue drained by one daemon thread, so the
    request that queued them never waits on SMTP and is unaffected by how
    delivery goes. Each job gets `max_attempts` tries with a
    base_delay * 2**attempt second pause between them; a job that still
    fails is logged and dropped. Nothing survives a process restart.
    """

    def __init__(self, send=send_email, max_attempts=None, base_delay=None, sync=None,
                 sleep=time.sleep, logger=None):
        self.send = send
        self.max_attempts = max_attempts or getattr(settings, 'EMAIL_MAX_ATTEMPTS', 3)
        self.base_delay = base_delay if base_delay is not None else getattr(settings, 'EMAIL_RETRY_BASE_DELAY', 1)
        self.sync = sync if sync is not None else getattr(settings, 'EMAIL_WORKER_SYNC', False)
        self.sleep = sleep
        self.logger = logger or logging.getLogger(__name__)
        self._queue = queue.Queue()
        self._thread = None
        self._lock = threading.Lock()

    def enqueue(self, job):
        if self.sync:
            self.deliver(job)
            return
        self._ensure_started()
        self._queue.put(job)
        self.logger.debug(f"Queued email to {job.to}")

    def deliver(self, job):
        """Try to send one job; returns True on success, False once retries are exhausted"""
        for attempt in range(1, self.max_attempts + 1):
            try:
                self.send(job)
                return True
            except Exception as e:
                self.logger.warning(
                    f"Email to {job.to} failed (attempt {attempt}/{self.max_attempts}): {e}"
                )
                if attempt < self.max_attempts:
                    self.sleep(self.base_delay * 2 ** attempt)

        self.logger.error(f"Giving up on email to {job.to} after {self.max_attempts} attempts: {job.subject}")
        return False

    def join(self):
        """Block until every queued job has been handled"""
        self._queue.join()

    def _ensure_started(self):
        with self._lock:
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(target=self._run, name='email-worker', daemon=True)
                self._thread.start()

    def _run(self):
        while True:
            job = self._queue.get()
            try:
                self.deliver(job)
            finally:
                self._queue.task_done()


_worker = None
_worker_lock = threading.Lock()


def get_email_worker():
    global _worker
    with _worker_lock:
        if _worker is None:
            _worker = EmailWorker()
        return _worker
