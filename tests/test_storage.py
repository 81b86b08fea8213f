"""
Tests for the metadata stores. Every test runs against both implementations.
"""
import pytest
from datetime import timedelta
from tir_takip.core.exceptions import DuplicateTokenError
from tir_takip.core.time_utils import utc_now
from tir_takip.models.document import FileType
from tir_takip.models.share_link import ShareLinkType
from tir_takip.schemas.document import DocumentCreate
from tir_takip.schemas.share_link import ShareLinkCreate
from tir_takip.schemas.tir import TirCreate


def make_document(tir_id: str, file_type: FileType = FileType.OTHER, suffix: str = "a") -> DocumentCreate:
    return DocumentCreate(
        tir_id=tir_id,
        file_name=f"scan-{suffix}.pdf",
        file_type=file_type,
        cloudinary_url=f"https://res.cloudinary.test/{tir_id}_{suffix}",
        cloudinary_public_id=f"gmi-tir-documents/{tir_id}_{suffix}",
        file_size=1024,
        mime_type="application/pdf",
    )


def make_link(link_type: ShareLinkType, token: str, tir_id=None, expiry_date=None) -> ShareLinkCreate:
    return ShareLinkCreate(type=link_type, tir_id=tir_id, token=token, expiry_date=expiry_date)


class TestTirOperations:
    """Tests for TIR create/read/update."""

    async def test_create_assigns_id_and_timestamp(self, store):
        tir = await store.create_tir(TirCreate(phone="+90 532 111 2233"))

        assert len(tir.id) == 32
        assert tir.last_updated is not None
        assert tir.last_updated.tzinfo is not None
        assert (tir.plate, tir.trailer_plate, tir.location) == ("", "", "")

    async def test_get_unknown_returns_none(self, store):
        assert await store.get_tir("0" * 32) is None

    async def test_update_merges_and_bumps_timestamp(self, store):
        tir = await store.create_tir(TirCreate(phone="555", plate="34 ABC 123"))

        updated = await store.update_tir(tir.id, {"location": "Kapıkule"})

        assert updated.location == "Kapıkule"
        assert updated.plate == "34 ABC 123"
        assert updated.last_updated >= tir.last_updated

    async def test_update_unknown_returns_none(self, store):
        assert await store.update_tir("0" * 32, {"plate": "x"}) is None

    async def test_empty_update_only_bumps_timestamp(self, store):
        tir = await store.create_tir(TirCreate(phone="555"))

        updated = await store.update_tir(tir.id, {})

        assert updated.phone == "555"
        assert updated.last_updated >= tir.last_updated

    async def test_list_is_most_recent_first(self, store):
        first = await store.create_tir(TirCreate(phone="1"))
        second = await store.create_tir(TirCreate(phone="2"))
        await store.update_tir(first.id, {"location": "Ankara"})

        tirs = await store.get_all_tirs()

        assert [t.id for t in tirs] == [first.id, second.id]


class TestDocumentOperations:
    """Tests for document storage and grouping."""

    async def test_create_and_list_by_tir(self, store):
        tir = await store.create_tir(TirCreate(phone="555"))
        other = await store.create_tir(TirCreate(phone="666"))
        await store.create_document(make_document(tir.id, FileType.CMR, "a"))
        await store.create_document(make_document(tir.id, FileType.T1, "b"))
        await store.create_document(make_document(other.id, FileType.T1, "c"))

        documents = await store.get_documents_by_tir(tir.id)

        assert len(documents) == 2
        assert all(d.tir_id == tir.id for d in documents)
        assert await store.count_documents(tir.id) == 2
        assert await store.count_documents(other.id) == 1

    async def test_grouping_always_has_six_categories(self, store):
        tir = await store.create_tir(TirCreate(phone="555"))
        await store.create_document(make_document(tir.id, FileType.INVOICE))

        grouped = await store.get_documents_by_type(tir.id)

        assert set(grouped) == set(FileType)
        assert len(grouped[FileType.INVOICE]) == 1
        assert all(len(grouped[t]) == 0 for t in FileType if t != FileType.INVOICE)

    async def test_grouping_for_tir_without_documents(self, store):
        grouped = await store.get_documents_by_type("0" * 32)

        assert set(grouped) == {
            FileType.T1, FileType.CMR, FileType.INVOICE,
            FileType.DOCTOR, FileType.TURKISH_INVOICE, FileType.OTHER,
        }

    async def test_delete_document(self, store):
        tir = await store.create_tir(TirCreate(phone="555"))
        document = await store.create_document(make_document(tir.id))

        assert await store.delete_document(document.id) is True
        assert await store.get_document(document.id) is None
        assert await store.delete_document(document.id) is False

    async def test_delete_documents_by_tir(self, store):
        tir = await store.create_tir(TirCreate(phone="555"))
        await store.create_document(make_document(tir.id, suffix="a"))
        await store.create_document(make_document(tir.id, suffix="b"))

        assert await store.delete_documents_by_tir(tir.id) == 2
        assert await store.get_documents_by_tir(tir.id) == []


class TestShareLinkOperations:
    """Tests for share link storage and access counting."""

    async def test_create_sets_defaults(self, store):
        link = await store.create_share_link(make_link(ShareLinkType.LIST, "t" * 32))

        assert link.active is True
        assert link.access_count == 0
        assert link.last_accessed is None
        assert link.created_at is not None
        assert (await store.get_share_link("t" * 32)).id == link.id
        assert (await store.get_share_link_by_id(link.id)).token == "t" * 32

    async def test_duplicate_token_rejected(self, store):
        await store.create_share_link(make_link(ShareLinkType.LIST, "d" * 32))

        with pytest.raises(DuplicateTokenError):
            await store.create_share_link(make_link(ShareLinkType.LIST, "d" * 32))

    async def test_list_by_type(self, store):
        tir = await store.create_tir(TirCreate(phone="555"))
        await store.create_share_link(make_link(ShareLinkType.TIR, "a" * 32, tir_id=tir.id))
        await store.create_share_link(make_link(ShareLinkType.LIST, "b" * 32))

        tir_links = await store.get_share_links_by_type(ShareLinkType.TIR)
        list_links = await store.get_share_links_by_type(ShareLinkType.LIST)

        assert [l.token for l in tir_links] == ["a" * 32]
        assert [l.token for l in list_links] == ["b" * 32]

    async def test_update_active_and_expiry(self, store):
        link = await store.create_share_link(make_link(ShareLinkType.LIST, "u" * 32))
        expiry = utc_now() + timedelta(days=1)

        updated = await store.update_share_link(link.id, {"active": False, "expiry_date": expiry})

        assert updated.active is False
        assert abs(updated.expiry_date - expiry) < timedelta(seconds=1)
        assert updated.token == link.token

    async def test_update_unknown_returns_none(self, store):
        assert await store.update_share_link("0" * 32, {"active": False}) is None

    async def test_record_access_increments(self, store):
        await store.create_share_link(make_link(ShareLinkType.LIST, "r" * 32))

        await store.record_access("r" * 32)
        await store.record_access("r" * 32)

        link = await store.get_share_link("r" * 32)
        assert link.access_count == 2
        assert link.last_accessed is not None

    async def test_record_access_unknown_token_is_noop(self, store):
        await store.record_access("x" * 32)

        assert await store.get_share_link("x" * 32) is None

    async def test_delete_share_link(self, store):
        link = await store.create_share_link(make_link(ShareLinkType.LIST, "z" * 32))

        assert await store.delete_share_link(link.id) is True
        assert await store.get_share_link("z" * 32) is None
        assert await store.delete_share_link(link.id) is False


class TestCascade:
    """Tests for TIR deletion cascading to documents and tir share links."""

    async def test_delete_tir_removes_owned_rows(self, store):
        tir = await store.create_tir(TirCreate(phone="555"))
        keep = await store.create_tir(TirCreate(phone="666"))
        await store.create_document(make_document(tir.id, suffix="a"))
        await store.create_document(make_document(keep.id, suffix="b"))
        await store.create_share_link(make_link(ShareLinkType.TIR, "c" * 32, tir_id=tir.id))
        await store.create_share_link(make_link(ShareLinkType.TIR, "k" * 32, tir_id=keep.id))
        await store.create_share_link(make_link(ShareLinkType.LIST, "l" * 32))

        assert await store.delete_tir(tir.id) is True

        assert await store.get_tir(tir.id) is None
        assert await store.get_documents_by_tir(tir.id) == []
        tir_links = await store.get_share_links_by_type(ShareLinkType.TIR)
        assert all(l.tir_id != tir.id for l in tir_links)
        assert len(tir_links) == 1
        assert len(await store.get_share_links_by_type(ShareLinkType.LIST)) == 1
        assert await store.count_documents(keep.id) == 1

    async def test_delete_unknown_tir(self, store):
        assert await store.delete_tir("0" * 32) is False
