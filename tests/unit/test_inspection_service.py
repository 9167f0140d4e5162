"""Tests for the inspection service — persistence, checklist upsert, lifecycle."""

import asyncio
import sqlite3
from contextlib import closing
from dataclasses import replace
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, inspect, select

from inspection_engine.auth.service import AuthService
from inspection_engine.common.config import InspectionSettings
from inspection_engine.common.database import DatabaseManager
from inspection_engine.common.exceptions import (
    AuthorizationError,
    InspectionLockedError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from inspection_engine.common.security import RequestContext
from inspection_engine.inspections.checklist import materialize, update_item
from inspection_engine.inspections.media import Upload
from inspection_engine.inspections.models import (
    InspectionItemModel,
    InspectionModel,
    InspectionPhotoModel,
)
from inspection_engine.inspections.service import InspectionService
from inspection_engine.notifications.service import NotificationService

SIG = "data:image/png;base64,AAAA"

TECH = RequestContext(user_id="u-tech", full_name="Tiago", roles=("tecnico",))
OTHER_TECH = RequestContext(user_id="u-other", roles=("tecnico",))
SUPERVISOR = RequestContext(user_id="u-sup", roles=("supervisor",))


def make_settings(**overrides) -> InspectionSettings:
    defaults = {"secret_key": "test-secret", "db_url": "sqlite+aiosqlite://"}
    defaults.update(overrides)
    return InspectionSettings(**defaults)


@pytest.fixture
async def db():
    settings = make_settings()
    manager = DatabaseManager(settings)
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
async def file_db(tmp_path):
    """A file-backed database so each session gets its own connection."""
    manager = DatabaseManager(make_settings(db_url=f"sqlite+aiosqlite:///{tmp_path / 'inspections.db'}"))
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


def _committed(db, sql, params):
    # A separate sqlite3 connection only sees committed rows.
    with closing(sqlite3.connect(db.engine.url.database)) as conn:
        return conn.execute(sql, params).fetchone()


def committed_count(db, table, row_id):
    return _committed(db, f"SELECT COUNT(*) FROM {table} WHERE id = ?", (row_id,))[0]


def committed_document(db, inspection_id):
    return _committed(
        db, "SELECT driver_documents_url FROM inspections WHERE id = ?", (inspection_id,)
    )[0]


def committed_items(db, inspection_id):
    with closing(sqlite3.connect(db.engine.url.database)) as conn:
        rows = conn.execute(
            "SELECT category, item_description, exit_status FROM inspection_items"
            " WHERE inspection_id = ?",
            (inspection_id,),
        ).fetchall()
    return {(category, description): status for category, description, status in rows}


@pytest.fixture
def svc(tmp_path):
    return InspectionService(make_settings(media_root=str(tmp_path)))


async def create(svc, session, ctx=TECH, **overrides):
    fields = {
        "inspection_date": date(2026, 5, 10),
        "process_type": "instalacao_entrada_target",
        "model": "FL936F",
        "serial_number": "ABC123456",
        "horimeter": 500,
    }
    fields.update(overrides)
    return await svc.create_inspection(session, ctx, **fields)


async def item_count(session, inspection_id):
    result = await session.execute(
        select(func.count(InspectionItemModel.id)).where(
            InspectionItemModel.inspection_id == inspection_id
        )
    )
    return result.scalar_one()


class TestCreate:
    async def test_create_defaults(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session, model="  FL936F ")
            assert inspection.status == "em_andamento"
            assert inspection.model == "FL936F"
            assert inspection.created_by == "u-tech"

    async def test_unknown_machine_model(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(NotFoundError):
                await create(svc, session, model_id="missing")

    async def test_unknown_process_type(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(ValidationError):
                await create(svc, session, process_type="revisao")


class TestChecklistPersistence:
    async def test_unsaved_checklist_is_catalog(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
            items, persisted = await svc.get_items(session, TECH, inspection.id)
            assert persisted is False
            assert len(items) == 65

    async def test_save_twice_is_idempotent(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
        items = update_item(materialize(), 0, "entry_status", "A")
        for _ in range(2):
            async with db.get_session() as session:
                await svc.save_items(session, TECH, inspection.id, items)
        async with db.get_session() as session:
            assert await item_count(session, inspection.id) == 65
            saved, persisted = await svc.get_items(session, TECH, inspection.id)
            assert persisted is True
            assert sorted(i.key for i in saved) == sorted(i.key for i in items)
            assert next(i for i in saved if i.key == items[0].key).entry_status == "A"

    async def test_last_writer_wins(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
        first = update_item(materialize(), 5, "exit_status", "A")
        second = update_item(materialize(), 5, "exit_status", "C")
        async with db.get_session() as session:
            await svc.save_items(session, TECH, inspection.id, first)
        async with db.get_session() as session:
            await svc.save_items(session, SUPERVISOR, inspection.id, second)
        async with db.get_session() as session:
            saved, _ = await svc.get_items(session, TECH, inspection.id)
            assert next(i for i in saved if i.key == first[5].key).exit_status == "C"

    async def test_missing_items_are_deleted(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
        async with db.get_session() as session:
            await svc.save_items(session, TECH, inspection.id, materialize())
        async with db.get_session() as session:
            await svc.save_items(session, TECH, inspection.id, materialize()[:10])
        async with db.get_session() as session:
            assert await item_count(session, inspection.id) == 10

    async def test_saved_items_keep_catalog_order(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
            await svc.save_items(session, TECH, inspection.id, list(reversed(materialize())))
            saved, _ = await svc.get_items(session, TECH, inspection.id)
            assert [i.key for i in saved] == [i.key for i in materialize()]

    async def test_overlapping_first_saves_both_succeed(self, file_db, svc):
        async with file_db.get_session() as session:
            inspection = await create(svc, session)
        first = [replace(item, exit_status="A") for item in materialize()[:20]]
        second = [replace(item, exit_status="C") for item in materialize()[10:40]]

        async def save(items):
            async with file_db.get_session() as session:
                return await svc.save_items(session, TECH, inspection.id, items)

        results = await asyncio.gather(save(first), save(second))
        assert [len(r) for r in results] == [20, 30]
        stored = committed_items(file_db, inspection.id)
        assert stored in (
            {item.key: "A" for item in first},
            {item.key: "C" for item in second},
        )

    async def test_other_technician_cannot_save(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
            with pytest.raises(AuthorizationError):
                await svc.save_items(session, OTHER_TECH, inspection.id, materialize())


class TestModels:
    def test_inspection_tables_have_no_orm_relationships(self):
        for model in (InspectionModel, InspectionItemModel, InspectionPhotoModel):
            assert not inspect(model).relationships

    async def test_deleting_inspection_cascades_in_database(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
            await svc.save_items(session, TECH, inspection.id, materialize())
        await svc.add_photos(db, TECH, inspection.id, "engine", [Upload("a.jpg", "image/jpeg", b"a")])
        async with db.get_session() as session:
            await session.delete(await session.get(InspectionModel, inspection.id))
        async with db.get_session() as session:
            assert await item_count(session, inspection.id) == 0
            photos = await session.execute(
                select(func.count(InspectionPhotoModel.id)).where(
                    InspectionPhotoModel.inspection_id == inspection.id
                )
            )
            assert photos.scalar_one() == 0


class TestLifecycle:
    async def test_fl936f_scenario(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
            await svc.sign(session, TECH, inspection.id, "entry", SIG, signer_name="Tiago")
            with pytest.raises(PreconditionError):
                await svc.finalize(session, TECH, inspection.id)
            assert inspection.status == "em_andamento"

            await svc.sign(session, TECH, inspection.id, "exit", SIG, signer_name="Tiago")
            finalized, notified = await svc.finalize(session, TECH, inspection.id)
            assert finalized.status == "finalizada"
            assert notified == {"sent": 0, "failed": 0}

            with pytest.raises(ValidationError):
                await svc.reject(session, SUPERVISOR, inspection.id, "")
            assert inspection.status == "finalizada"

            rejected = await svc.reject(session, SUPERVISOR, inspection.id, "motor com vazamento")
            assert rejected.status == "reprovada"
            assert rejected.approval_observations == "motor com vazamento"
            assert rejected.approved_by == "u-sup"

    async def test_finalized_is_read_only(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session, process_type="entrada_dnm")
            await svc.sign(session, TECH, inspection.id, "entry", SIG, signer_name="Tiago")
            await svc.finalize(session, TECH, inspection.id)
            with pytest.raises(InspectionLockedError):
                await svc.update_inspection(session, TECH, inspection.id, horimeter=600)
            with pytest.raises(InspectionLockedError):
                await svc.save_items(session, TECH, inspection.id, materialize())

    async def test_finalize_blocks_b_items_without_description(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session, process_type="saida_cbmaq")
            await svc.sign(session, TECH, inspection.id, "exit", SIG, signer_name="Tiago")
            items = update_item(materialize(), 0, "exit_status", "B")
            await svc.save_items(session, TECH, inspection.id, items)
            with pytest.raises(PreconditionError):
                await svc.finalize(session, TECH, inspection.id)

    async def test_finalize_notifies_domain_users(self, db, tmp_path):
        settings = make_settings(media_root=str(tmp_path), notify_email_domain="example.com")
        auth = AuthService(settings)
        notifier = NotificationService(settings)
        notifier.email_sender.send = AsyncMock(return_value=True)
        svc = InspectionService(settings, auth_service=auth, notification_service=notifier)

        async with db.get_session() as session:
            await auth.create_user(session, "sup@example.com", "senha123", "Sup", "supervisor")
            await auth.create_user(session, "fora@outro.com", "senha123", "Fora", "supervisor")
            inspection = await create(svc, session, process_type="entrada_cbmaq")
            await svc.sign(session, TECH, inspection.id, "entry", SIG, signer_name="Tiago")
            _, notified = await svc.finalize(session, TECH, inspection.id)

        assert notified == {"sent": 1, "failed": 0}
        assert notifier.email_sender.send.await_args.args[0] == "sup@example.com"


class TestUpdate:
    async def test_update_and_clear(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session, freight_responsible="Transportadora X")
            updated = await svc.update_inspection(
                session, TECH, inspection.id,
                horimeter=750, freight_responsible=None, general_observations="  ok  ",
            )
            assert updated.horimeter == 750
            assert updated.freight_responsible is None
            assert updated.general_observations == "ok"


class TestPhotos:
    async def test_batch_stored_per_file(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
        uploads = [
            Upload("a.jpg", "image/jpeg", b"a"),
            Upload("b.mp4", "video/mp4", b"b"),
        ]
        photos = await svc.add_photos(db, TECH, inspection.id, "engine", uploads)
        assert [p.media_type for p in photos] == ["image", "video"]
        async with db.get_session() as session:
            listed = await svc.list_photos(session, TECH, inspection.id, photo_type="engine")
            assert len(listed) == 2

    async def test_invalid_file_stores_nothing(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
        uploads = [Upload("a.jpg", "image/jpeg", b"a"), Upload("b.exe", "application/x-msdownload", b"b")]
        with pytest.raises(ValidationError):
            await svc.add_photos(db, TECH, inspection.id, "engine", uploads)
        async with db.get_session() as session:
            assert await svc.list_photos(session, TECH, inspection.id) == []

    async def test_unknown_photo_type(self, db, svc):
        with pytest.raises(ValidationError):
            await svc.add_photos(db, TECH, "whatever", "selfie", [])

    async def test_driver_document_replace_and_remove(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
        await svc.set_driver_document(
            db, TECH, inspection.id, Upload("cnh.pdf", "application/pdf", b"%PDF")
        )
        async with db.get_session() as session:
            first = (await svc.get_inspection(session, TECH, inspection.id)).driver_documents_url
        assert first.startswith("driver-documents/")
        updated = await svc.set_driver_document(
            db, TECH, inspection.id, Upload("cnh.png", "image/png", b"png")
        )
        assert updated.driver_documents_url != first
        with pytest.raises(NotFoundError):
            svc.storage.read(first)
        removed = await svc.remove_driver_document(db, TECH, inspection.id)
        assert removed.driver_documents_url is None
        with pytest.raises(NotFoundError):
            svc.storage.read(updated.driver_documents_url)

    async def test_photo_file_removed_after_commit(self, file_db, svc):
        async with file_db.get_session() as session:
            inspection = await create(svc, session)
        [photo] = await svc.add_photos(
            file_db, TECH, inspection.id, "engine", [Upload("a.jpg", "image/jpeg", b"a")]
        )
        seen = []

        def delete(path):
            seen.append(committed_count(file_db, "inspection_photos", photo.id))
            return True

        with patch.object(svc.storage, "delete", side_effect=delete):
            await svc.delete_photo(file_db, TECH, inspection.id, photo.id)
        assert seen == [0]

    async def test_photo_kept_when_delete_fails(self, db, svc):
        async with db.get_session() as session:
            inspection = await create(svc, session)
        [photo] = await svc.add_photos(
            db, TECH, inspection.id, "engine", [Upload("a.jpg", "image/jpeg", b"a")]
        )
        with pytest.raises(NotFoundError):
            await svc.delete_photo(db, TECH, inspection.id, "missing")
        with pytest.raises(AuthorizationError):
            await svc.delete_photo(db, OTHER_TECH, inspection.id, photo.id)
        assert svc.storage.read(photo.photo_url) == b"a"

    async def test_replaced_document_removed_after_commit(self, file_db, svc):
        async with file_db.get_session() as session:
            inspection = await create(svc, session)
        first = await svc.set_driver_document(
            file_db, TECH, inspection.id, Upload("cnh.pdf", "application/pdf", b"%PDF")
        )
        old_path = first.driver_documents_url
        seen = []

        def delete(path):
            seen.append((path, committed_document(file_db, inspection.id)))
            return True

        with patch.object(svc.storage, "delete", side_effect=delete):
            second = await svc.set_driver_document(
                file_db, TECH, inspection.id, Upload("cnh.png", "image/png", b"png")
            )
        assert seen == [(old_path, second.driver_documents_url)]
