"""
Generic controller behind the admin CRUD screens.

One page = one collection + one form modal + one delete confirmation:

    load()            fetch the collection (search term applied by the page)
    set_search(term)  debounced reload
    open_create()     modal with an empty form
    open_edit(rec)    modal seeded from the record
    submit()          validate -> create/update -> close -> reload
    request_delete()  open the confirmation; confirm_delete() calls and reloads

Failures never raise out of the page: they become error toasts carrying the
server's message, or the page's fallback text.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

import structlog

from shared.api import ApiClient, ApiError, FormValidationError
from shared.api.models import CamelModel, as_list, parse_records
from shared.config.settings import SEARCH_DEBOUNCE_SECONDS
from shared.notifications import Notifier

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=CamelModel)
FormT = TypeVar("FormT", bound=CamelModel)


@dataclass
class FormModal(Generic[RecordT, FormT]):
    is_open: bool = False
    editing: Optional[RecordT] = None
    form: Optional[FormT] = None
    submitting: bool = False


@dataclass
class ConfirmDialog(Generic[RecordT]):
    target: Optional[RecordT] = None
    deleting: bool = False

    @property
    def is_open(self) -> bool:
        return self.target is not None


class CrudPage(Generic[RecordT, FormT]):
    record_model: type[CamelModel]
    form_model: type[CamelModel]
    supports_update = True

    load_error = "Could not load records"
    created_message = "Created successfully"
    updated_message = "Updated successfully"
    deleted_message = "Deleted successfully"
    create_error = "Could not create"
    update_error = "Could not update"
    delete_error = "Could not delete"

    def __init__(
        self,
        client: ApiClient,
        notifier: Notifier,
        debounce: float = SEARCH_DEBOUNCE_SECONDS,
        sleep=asyncio.sleep,
    ):
        self.client = client
        self.notifier = notifier
        self.debounce = debounce
        self._sleep = sleep

        self.items: list[RecordT] = []
        self.loading = False
        self.search_term = ""
        self.modal: FormModal[RecordT, FormT] = FormModal()
        self.confirm: ConfirmDialog[RecordT] = ConfirmDialog()
        self._search_task: Optional[asyncio.Task] = None

    # --- API hooks, implemented per page ---

    async def fetch(self) -> Any:
        raise NotImplementedError

    async def create(self, form: FormT) -> Any:
        raise NotImplementedError

    async def update(self, record: RecordT, form: FormT) -> Any:
        raise NotImplementedError

    async def delete(self, record: RecordT) -> Any:
        raise NotImplementedError

    def submit_error_message(self, editing: bool, error: ApiError) -> str:
        return error.message or (self.update_error if editing else self.create_error)

    # --- Collection ---

    async def load(self) -> bool:
        self.loading = True
        try:
            data = await self.fetch()
        except ApiError as e:
            logger.warning("page_load_failed", page=type(self).__name__, error=e.message)
            self.notifier.error(self.load_error)
            return False
        finally:
            self.loading = False
        self.items = parse_records(self.record_model, as_list(data))
        return True

    def set_search(self, term: str) -> asyncio.Task:
        """Updates the search term; the reload fires once typing pauses."""
        self.search_term = term
        if self._search_task and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = asyncio.create_task(self._debounced_load())
        return self._search_task

    async def _debounced_load(self) -> None:
        await self._sleep(self.debounce)
        await self.load()

    # --- Form modal ---

    def open_create(self) -> FormT:
        self.modal = FormModal(is_open=True, editing=None, form=self.form_model())
        return self.modal.form

    def open_edit(self, record: RecordT) -> FormT:
        if not self.supports_update:
            raise NotImplementedError(f"{type(self).__name__} records cannot be edited")
        self.modal = FormModal(is_open=True, editing=record, form=self.form_model.from_record(record))
        return self.modal.form

    def close_modal(self) -> None:
        self.modal = FormModal()

    async def submit(self) -> bool:
        if not self.modal.is_open or self.modal.form is None:
            return False
        editing = self.modal.editing
        form = self.modal.form

        try:
            form.validate_for(editing=editing is not None)
        except FormValidationError as e:
            self.notifier.error(e.message)
            return False

        self.modal.submitting = True
        try:
            if editing is not None:
                await self.update(editing, form)
                message = self.updated_message
            else:
                await self.create(form)
                message = self.created_message
        except ApiError as e:
            self.notifier.error(self.submit_error_message(editing is not None, e))
            return False
        finally:
            self.modal.submitting = False

        self.notifier.success(message)
        self.close_modal()
        await self.load()
        return True

    # --- Delete confirmation ---

    def request_delete(self, record: RecordT) -> None:
        self.confirm = ConfirmDialog(target=record)

    def cancel_delete(self) -> None:
        self.confirm = ConfirmDialog()

    async def confirm_delete(self) -> bool:
        target = self.confirm.target
        if target is None:
            return False
        self.confirm.deleting = True
        try:
            await self.delete(target)
        except ApiError as e:
            self.notifier.error(e.message or self.delete_error)
            return False
        finally:
            self.confirm = ConfirmDialog()
        self.notifier.success(self.deleted_message)
        await self.load()
        return True
