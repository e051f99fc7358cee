from typing import Optional

from shared.api import ApiError
from shared.api.models import as_list, parse_records
from services.order_service.schemas import Order

from .crud import CrudPage
from .schemas import (
    AdminUser,
    AdminUserForm,
    Category,
    CategoryForm,
    Customer,
    CustomerForm,
    CustomerStats,
    DeliveryPerson,
    DeliveryPersonForm,
)


class UsersPage(CrudPage[AdminUser, AdminUserForm]):
    record_model = AdminUser
    form_model = AdminUserForm

    load_error = "Could not load users"
    created_message = "User created successfully"
    updated_message = "User updated successfully"
    deleted_message = "User deleted successfully"
    create_error = "Could not create user"
    update_error = "Could not update user"
    delete_error = "Could not delete user"

    async def fetch(self):
        return await self.client.get_admin_users(search=self.search_term.strip() or None)

    async def create(self, form: AdminUserForm):
        return await self.client.create_admin_user(form.create_payload())

    async def update(self, record: AdminUser, form: AdminUserForm):
        return await self.client.update_admin_user(record.id, form.update_payload(record))

    async def delete(self, record: AdminUser):
        return await self.client.delete_admin_user(record.id)


class CategoriesPage(CrudPage[Category, CategoryForm]):
    record_model = Category
    form_model = CategoryForm

    load_error = "Could not load categories"
    created_message = "Category created successfully"
    updated_message = "Category updated successfully"
    deleted_message = "Category deleted successfully"
    create_error = "Could not create category"
    update_error = "Could not update category"
    delete_error = "Could not delete category"

    async def fetch(self):
        # Admins manage inactive categories too
        return await self.client.get_categories(include_inactive=True)

    async def create(self, form: CategoryForm):
        return await self.client.create_category(form.create_payload())

    async def update(self, record: Category, form: CategoryForm):
        return await self.client.update_category(record.id, form.update_payload(record))

    async def delete(self, record: Category):
        return await self.client.delete_category(record.id)


class CustomersPage(CrudPage[Customer, CustomerForm]):
    """Customers can be created and removed here, not edited."""

    record_model = Customer
    form_model = CustomerForm
    supports_update = False

    load_error = "Could not load customers"
    created_message = "Customer created successfully"
    deleted_message = "Customer deleted successfully"
    create_error = "Could not create customer"
    delete_error = "Could not delete customer"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.stats: Optional[CustomerStats] = None
        self.selected: Optional[Customer] = None

    async def fetch(self):
        return await self.client.get_customers(search=self.search_term.strip() or None)

    async def load(self) -> bool:
        loaded = await super().load()
        if loaded:
            await self.load_stats()
        return loaded

    async def load_stats(self) -> Optional[CustomerStats]:
        try:
            self.stats = CustomerStats.model_validate(await self.client.get_customer_stats())
        except ApiError as e:
            self.notifier.error(e.message or "Could not load customer statistics")
        return self.stats

    async def show_details(self, customer: Customer) -> Optional[Customer]:
        """Fetches the full record, recent orders included."""
        try:
            self.selected = Customer.model_validate(await self.client.get_customer(customer.id))
        except ApiError as e:
            self.notifier.error(e.message or "Could not load customer details")
            return None
        return self.selected

    def close_details(self) -> None:
        self.selected = None

    async def create(self, form: CustomerForm):
        return await self.client.create_customer(form.create_payload())

    async def delete(self, record: Customer):
        return await self.client.delete_customer(record.id)


class DeliveryPersonsPage(CrudPage[DeliveryPerson, DeliveryPersonForm]):
    record_model = DeliveryPerson
    form_model = DeliveryPersonForm

    load_error = "Could not load delivery persons"
    created_message = "Delivery person created successfully"
    updated_message = "Delivery person updated successfully"
    deleted_message = "Delivery person deleted successfully"
    create_error = "Could not create delivery person"
    update_error = "Could not update delivery person"
    delete_error = "Could not delete delivery person"

    async def fetch(self):
        return await self.client.get_delivery_persons()

    async def create(self, form: DeliveryPersonForm):
        return await self.client.create_delivery_person(form.create_payload())

    async def update(self, record: DeliveryPerson, form: DeliveryPersonForm):
        return await self.client.update_delivery_person(record.id, form.update_payload(record))

    async def delete(self, record: DeliveryPerson):
        return await self.client.delete_delivery_person(record.id)

    async def orders_for(self, person: DeliveryPerson, include_completed: bool = False) -> list[Order]:
        try:
            data = await self.client.get_delivery_person_orders_by_admin(person.id, include_completed)
        except ApiError as e:
            self.notifier.error(e.message or "Could not load orders")
            return []
        return parse_records(Order, as_list(data))
