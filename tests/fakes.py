# tests/fakes.py

from salon.whatsapp import SendResult, WhatsAppProvider


class InMemoryJobQueue:
    """JobQueue kept in a dict; like arq, a job id is refused while a job or its result is kept."""

    def __init__(self):
        self.jobs = {}
        self.results = {}

    async def enqueue(self, lane, payload, job_id, delay=None):
        key = (lane.name, job_id)
        if key in self.jobs or key in self.results:
            return None
        self.jobs[key] = {"payload": payload, "delay": delay}
        return job_id

    async def find_job(self, lane, job_id):
        key = (lane.name, job_id)
        if key in self.results:
            return "complete"
        job = self.jobs.get(key)
        if job is None:
            return None
        return "deferred" if job["delay"] else "queued"

    async def remove_job(self, lane, job_id):
        key = (lane.name, job_id)
        self.results.pop(key, None)
        return self.jobs.pop(key, None) is not None

    def finish(self, lane, job_id, result=None):
        """Runs a queued job to completion, keeping its result like arq's keep_result."""
        key = (lane.name, job_id)
        self.jobs.pop(key)
        self.results[key] = result

    def get(self, lane, job_id):
        return self.jobs.get((lane.name, job_id))


class FakeProvider(WhatsAppProvider):
    name = "fake"

    def __init__(self, fail=False):
        super().__init__()
        self.fail = fail
        self.sent = []

    async def send_text(self, to, body):
        self.sent.append((to, body))
        if self.fail:
            return SendResult(success=False, error="provider down")
        return SendResult(success=True, external_id=f"msg-{len(self.sent)}")
