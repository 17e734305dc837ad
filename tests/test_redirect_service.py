"""
Tests for the scan flow: slug resolution, visit recording and the
guarantee that recording problems never block a redirect.
"""

import pytest

from qr_redirect.core.exceptions import QRCodeNotFoundError, StorageError
from qr_redirect.core.request_context import RequestContext
from qr_redirect.services.redirect_service import RedirectService, SlugResolver
from qr_redirect.services.visit_recorder import VisitRecorderService
from conftest import berlin_handler, geolocation_with


class FailingVisitStorage:
    """Wraps a real storage but refuses to write visits."""

    def __init__(self, storage):
        self.storage = storage

    async def get_qr_code_by_slug(self, slug):
        return await self.storage.get_qr_code_by_slug(slug)

    async def release(self):
        await self.storage.release()

    async def add_visit(self, visit):
        raise StorageError("disk full")


class CallLog:
    """Wraps a real storage and records the order of the calls made on it."""

    def __init__(self, storage, events):
        self.storage = storage
        self.events = events

    async def get_qr_code_by_slug(self, slug):
        self.events.append("get_qr_code_by_slug")
        return await self.storage.get_qr_code_by_slug(slug)

    async def release(self):
        self.events.append("release")
        await self.storage.release()

    async def add_visit(self, visit):
        self.events.append("add_visit")
        return await self.storage.add_visit(visit)


def make_redirect_service(storage, geolocation) -> RedirectService:
    return RedirectService(
        resolver=SlugResolver(storage),
        recorder=VisitRecorderService(storage, geolocation),
    )


class TestSlugResolver:

    async def test_resolves_existing_slug(self, storage, qr_code):
        resolved = await SlugResolver(storage).resolve("site-1")
        assert resolved.id == qr_code.id

    async def test_unknown_slug(self, storage):
        with pytest.raises(QRCodeNotFoundError):
            await SlugResolver(storage).resolve("does-not-exist")

    async def test_malformed_slug(self, storage, qr_code):
        with pytest.raises(QRCodeNotFoundError):
            await SlugResolver(storage).resolve("Site-1")


class TestRedirectService:

    async def test_returns_target_and_records_visit(self, storage, qr_code, geolocation, desktop_context):
        service = make_redirect_service(storage, geolocation)

        target = await service.handle_redirect("site-1", desktop_context)

        assert target == "https://example.com"
        visits = await storage.list_visits(qr_code.id)
        assert len(visits) == 1
        visit = visits[0]
        assert visit.ip == "1.2.3.4"
        assert visit.device == "Desktop"
        assert visit.city == "Berlin"
        assert visit.country == "Germany"
        assert visit.country_code == "DE"
        assert visit.timestamp is not None

    async def test_unknown_slug_records_nothing(self, storage, geolocation, desktop_context, count_rows):
        service = make_redirect_service(storage, geolocation)

        with pytest.raises(QRCodeNotFoundError):
            await service.handle_redirect("does-not-exist", desktop_context)

        assert count_rows("visits") == 0

    async def test_geolocation_failure_still_records_visit(
        self, storage, qr_code, broken_geolocation, desktop_context
    ):
        service = make_redirect_service(storage, broken_geolocation)

        target = await service.handle_redirect("site-1", desktop_context)

        assert target == "https://example.com"
        [visit] = await storage.list_visits(qr_code.id)
        assert visit.ip == "1.2.3.4"
        assert visit.device == "Desktop"
        assert visit.city is None
        assert visit.country is None
        assert visit.country_code is None

    async def test_storage_failure_does_not_block_redirect(
        self, storage, qr_code, geolocation, desktop_context, count_rows
    ):
        failing = FailingVisitStorage(storage)
        service = make_redirect_service(failing, geolocation)

        target = await service.handle_redirect("site-1", desktop_context)

        assert target == "https://example.com"
        assert count_rows("visits") == 0

    async def test_each_scan_is_a_separate_visit(self, storage, qr_code, geolocation):
        service = make_redirect_service(storage, geolocation)

        await service.handle_redirect("site-1", RequestContext(ip="1.1.1.1", device="Mobile"))
        await service.handle_redirect("site-1", RequestContext(ip="1.1.1.1", device="Mobile"))

        assert len(await storage.list_visits(qr_code.id)) == 2

    async def test_malformed_forwarded_ip_still_records_visit(self, storage, qr_code, geolocation):
        service = make_redirect_service(storage, geolocation)

        target = await service.handle_redirect("site-1", RequestContext(ip="1.2.3.4\tx", device="Desktop"))

        assert target == "https://example.com"
        [visit] = await storage.list_visits(qr_code.id)
        assert visit.ip is None
        assert visit.city is None
        assert visit.country is None
        assert visit.device == "Desktop"

    async def test_read_transaction_ends_before_geolocation(self, storage, qr_code, desktop_context):
        events = []

        def handler(request):
            events.append("geolocation")
            return berlin_handler(request)

        logged = CallLog(storage, events)
        service = make_redirect_service(logged, geolocation_with(handler))

        await service.handle_redirect("site-1", desktop_context)

        assert events == ["get_qr_code_by_slug", "release", "geolocation", "add_visit"]
