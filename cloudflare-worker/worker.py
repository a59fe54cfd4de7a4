from workers import WorkerEntrypoint  # Provided by the Python Workers runtime
import asgi  # ASGI adapter

from contact_api.main import app


class ContactWorker(WorkerEntrypoint):
    async def fetch(self, request):
        return await asgi.fetch(app, request, self.env)


export = ContactWorker()
