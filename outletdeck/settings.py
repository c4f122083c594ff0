###############################################################
#  SETTINGS – STORES, MANAGERS, PRODUCTS, RAW MATERIALS, VENDORS
###############################################################

import itertools
import logging
import random
from dataclasses import dataclass, replace
from datetime import datetime

from supabase import Client

from outletdeck.config import ALL_STORES, STORES
from outletdeck.errors import PersistenceError, SettingsValidationError

logger = logging.getLogger(__name__)

TABLES = ("stores", "managers", "products", "product_stores", "raw_materials", "vendors")

PRODUCT_STATUSES = ("active", "inactive")
VEG_TYPES = ("veg", "non-veg")

CODE_ATTEMPTS = 5


# ------------------------------------------------------------
# 1. RECORDS
# ------------------------------------------------------------

@dataclass(frozen=True)
class Store:
    name: str
    address: str = ""
    manager_id: str | None = None
    is_central: bool = False
    is_active: bool = True
    product_ids: tuple[str, ...] = ()
    id: str | None = None


@dataclass(frozen=True)
class Manager:
    name: str
    phone: str
    address: str = ""
    store_id: str | None = None
    generated_id: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class Product:
    name: str
    price: float
    code: str | None = None
    status: str = "active"
    veg_type: str = "veg"
    is_combo: bool = False
    recipe: str = ""
    store_ids: tuple[str, ...] = ()
    id: str | None = None


@dataclass(frozen=True)
class RawMaterial:
    name: str
    category: str = "General"
    unit: str = "kg"
    current_stock: float = 0
    min_stock: float = 0
    max_stock: float = 100
    price: float = 0
    is_active: bool = True
    storage_location: str = ""
    vendor_id: str | None = None
    code: str | None = None
    id: str | None = None

    @property
    def stock_status(self) -> str:
        if self.current_stock <= 0:
            return "out-of-stock"
        if self.current_stock <= self.min_stock:
            return "low-stock"
        if self.current_stock >= self.max_stock:
            return "overstock"
        return "in-stock"


@dataclass(frozen=True)
class Vendor:
    vendor_name: str
    contact_person: str = ""
    phone_number: str = ""
    email: str = ""
    address: str = ""
    gstin_tax_id: str = ""
    notes: str = ""
    raw_material_ids: tuple[str, ...] = ()
    id: str | None = None


# ------------------------------------------------------------
# 2. VALIDATION & CODES
# ------------------------------------------------------------

def _required(value: str, label: str):
    if not (value or "").strip():
        raise SettingsValidationError(f"{label} is required")


def _check_unique(records, value: str, key, label: str, exclude_id: str | None = None):
    """Case-insensitive uniqueness of `key(record)` among `records`."""
    needle = (value or "").strip().lower()
    if not needle:
        return
    for rec in records:
        if rec.id != exclude_id and (key(rec) or "").strip().lower() == needle:
            raise SettingsValidationError(f'{label} "{value}" already exists')


def generate_product_code(now: datetime | None = None, rng=None) -> str:
    now = now or datetime.now()
    rng = rng or random
    return f"PROD-{now:%y%m%d}-{rng.randrange(1_000_000)}"


def manager_code(now: datetime) -> str:
    return f"MGR-{str(int(now.timestamp() * 1000))[-6:]}"


def raw_material_code(now: datetime, position: int) -> str:
    return f"RM-{now:%Y%m%d}-{position:03d}"


# ------------------------------------------------------------
# 3. ROW MAPPING
# ------------------------------------------------------------

def _store_row(s: Store) -> dict:
    return {"name": s.name.strip(), "address": s.address, "is_central": s.is_central, "is_active": s.is_active}


def _manager_row(m: Manager) -> dict:
    return {"name": m.name.strip(), "phone": m.phone.strip(), "address": m.address}


def _product_row(p: Product) -> dict:
    return {
        "name": p.name.strip(),
        "price": p.price,
        "status": p.status,
        "recipe": p.recipe,
        "vegtype": p.veg_type,
        "iscombo": p.is_combo,
    }


def _material_row(m: RawMaterial) -> dict:
    return {
        "name": m.name.strip(),
        "category": m.category,
        "unit_of_measurement": m.unit,
        "current_stock": m.current_stock,
        "min_stock": m.min_stock,
        "max_stock": m.max_stock or 100,
        "price": m.price,
        "is_active": m.is_active,
        "storage_location": m.storage_location,
        "vendor_id": m.vendor_id,
    }


def _vendor_row(v: Vendor) -> dict:
    return {
        "vendor_name": v.vendor_name.strip(),
        "contact_person": v.contact_person,
        "phone_number": v.phone_number.strip(),
        "email": v.email.strip(),
        "address": v.address,
        "gstin_tax_id": v.gstin_tax_id,
        "notes": v.notes,
    }


# ------------------------------------------------------------
# 4. REPOSITORY
# ------------------------------------------------------------

class SettingsRepository:
    """
    Create / list / update / delete for the back-office tables.

    Without a client the tables live in memory for the session, like orders
    in offline mode. Failed database calls are logged and raised as
    PersistenceError; rejected input raises SettingsValidationError before
    anything is written.
    """

    def __init__(self, client: Client | None):
        self.client = client
        self._local: dict[str, list[dict]] = {t: [] for t in TABLES}
        self._seq = itertools.count(1)

    @property
    def offline(self) -> bool:
        return self.client is None

    # -- table access ------------------------------------------------

    def _select(self, table: str, newest_first: bool = True) -> list[dict]:
        if self.offline:
            return [dict(r) for r in self._local[table]]
        try:
            query = self.client.table(table).select("*")
            if newest_first:
                query = query.order("created_at", desc=True)
            return query.execute().data or []
        except Exception as exc:
            logger.error("Error fetching %s: %s", table, exc)
            raise PersistenceError(f"Failed to fetch {table}") from exc

    def _insert(self, table: str, rows: list[dict]) -> list[dict]:
        if not rows:
            return []
        if self.offline:
            created = [
                {"id": f"local-{next(self._seq)}", "created_at": datetime.now().isoformat(), **r}
                for r in rows
            ]
            self._local[table][:0] = created
            return created
        try:
            return self.client.table(table).insert(rows).execute().data
        except Exception as exc:
            logger.error("Error inserting into %s: %s", table, exc)
            raise PersistenceError(f"Failed to save to {table}") from exc

    def _update(self, table: str, values: dict, column: str, value) -> None:
        if self.offline:
            for r in self._local[table]:
                if r.get(column) == value:
                    r.update(values)
            return
        try:
            self.client.table(table).update(values).eq(column, value).execute()
        except Exception as exc:
            logger.error("Error updating %s: %s", table, exc)
            raise PersistenceError(f"Failed to update {table}") from exc

    def _delete(self, table: str, column: str, value) -> None:
        if self.offline:
            self._local[table] = [r for r in self._local[table] if r.get(column) != value]
            return
        try:
            self.client.table(table).delete().eq(column, value).execute()
        except Exception as exc:
            logger.error("Error deleting from %s: %s", table, exc)
            raise PersistenceError(f"Failed to delete from {table}") from exc

    # -- relationships ----------------------------------------------

    def _links(self) -> list[dict]:
        return self._select("product_stores", newest_first=False)

    def _set_links(self, column: str, owner_id: str, other: str, ids) -> None:
        self._delete("product_stores", column, owner_id)
        self._insert("product_stores", [{column: owner_id, other: i} for i in ids])

    def _assign_manager(self, manager_id: str, store_id: str) -> None:
        # a store has at most one manager and a manager runs at most one store
        self._update("managers", {"store_id": None}, "store_id", store_id)
        self._update("stores", {"manager_id": None}, "manager_id", manager_id)
        self._update("managers", {"store_id": store_id}, "id", manager_id)
        self._update("stores", {"manager_id": manager_id}, "id", store_id)

    def _clear_manager(self, manager_id: str | None, store_id: str | None) -> None:
        if manager_id:
            self._update("managers", {"store_id": None}, "id", manager_id)
        if store_id:
            self._update("stores", {"manager_id": None}, "id", store_id)

    def _link_materials(self, vendor_id: str, material_ids) -> None:
        self._update("raw_materials", {"vendor_id": None}, "vendor_id", vendor_id)
        for material_id in material_ids:
            self._update("raw_materials", {"vendor_id": vendor_id}, "id", material_id)

    # -- stores -----------------------------------------------------

    def list_stores(self) -> list[Store]:
        links = self._links()
        return [
            Store(
                id=r["id"],
                name=r["name"],
                address=r.get("address") or "",
                manager_id=r.get("manager_id"),
                is_central=bool(r.get("is_central")),
                is_active=r.get("is_active") is not False,
                product_ids=tuple(lk["product_id"] for lk in links if lk.get("store_id") == r["id"]),
            )
            for r in self._select("stores")
        ]

    def store_names(self) -> list[str]:
        """Store filter vocabulary: ALL_STORES plus active stores, else the built-in list."""
        try:
            names = sorted(s.name for s in self.list_stores() if s.is_active)
        except PersistenceError:
            names = []
        return [ALL_STORES] + names if names else list(STORES)

    def create_store(self, store: Store) -> Store:
        _required(store.name, "Store name")
        _check_unique(self.list_stores(), store.name, lambda s: s.name, "Store name")

        store_id = self._insert("stores", [{**_store_row(store), "manager_id": None}])[0]["id"]
        if store.manager_id:
            self._assign_manager(store.manager_id, store_id)
        self._insert("product_stores", [{"store_id": store_id, "product_id": p} for p in store.product_ids])
        logger.info("Created store %s", store.name)
        return replace(store, id=store_id)

    def update_store(self, store: Store) -> None:
        current = {s.id: s for s in self.list_stores()}
        if store.id not in current:
            raise SettingsValidationError(f"Unknown store: {store.id}")
        _required(store.name, "Store name")
        _check_unique(current.values(), store.name, lambda s: s.name, "Store name", store.id)

        self._update("stores", _store_row(store), "id", store.id)
        previous = current[store.id].manager_id
        if previous != store.manager_id:
            if previous:
                self._clear_manager(previous, store.id)
            if store.manager_id:
                self._assign_manager(store.manager_id, store.id)
        self._set_links("store_id", store.id, "product_id", store.product_ids)
        logger.info("Updated store %s", store.id)

    def delete_store(self, store_id: str) -> None:
        current = next((s for s in self.list_stores() if s.id == store_id), None)
        if current and current.manager_id:
            self._clear_manager(current.manager_id, store_id)
        self._delete("product_stores", "store_id", store_id)
        self._delete("stores", "id", store_id)
        logger.info("Deleted store %s", store_id)

    # -- managers ---------------------------------------------------

    def list_managers(self) -> list[Manager]:
        return [
            Manager(
                id=r["id"],
                name=r["name"],
                phone=r.get("phone") or "",
                address=r.get("address") or "",
                store_id=r.get("store_id"),
                generated_id=r.get("generated_id"),
            )
            for r in self._select("managers")
        ]

    @staticmethod
    def _validate_manager(manager: Manager, existing) -> None:
        _required(manager.name, "Manager name")
        _required(manager.phone, "Phone number")
        existing = list(existing)
        _check_unique(existing, manager.name, lambda m: m.name, "Manager name", manager.id)
        _check_unique(existing, manager.phone, lambda m: m.phone, "Phone number", manager.id)

    def create_manager(self, manager: Manager, now: datetime | None = None) -> Manager:
        self._validate_manager(manager, self.list_managers())
        generated_id = manager_code(now or datetime.now())

        row = self._insert(
            "managers", [{**_manager_row(manager), "store_id": None, "generated_id": generated_id}]
        )[0]
        if manager.store_id:
            self._assign_manager(row["id"], manager.store_id)
        logger.info("Created manager %s (%s)", manager.name, generated_id)
        return replace(manager, id=row["id"], generated_id=generated_id)

    def update_manager(self, manager: Manager) -> None:
        current = {m.id: m for m in self.list_managers()}
        if manager.id not in current:
            raise SettingsValidationError(f"Unknown manager: {manager.id}")
        self._validate_manager(manager, current.values())

        self._update("managers", _manager_row(manager), "id", manager.id)
        previous = current[manager.id].store_id
        if previous != manager.store_id:
            if previous:
                self._clear_manager(manager.id, previous)
            if manager.store_id:
                self._assign_manager(manager.id, manager.store_id)
        logger.info("Updated manager %s", manager.id)

    def delete_manager(self, manager_id: str) -> None:
        current = next((m for m in self.list_managers() if m.id == manager_id), None)
        if current and current.store_id:
            self._clear_manager(manager_id, current.store_id)
        self._delete("managers", "id", manager_id)
        logger.info("Deleted manager %s", manager_id)

    # -- products ---------------------------------------------------

    def list_products(self) -> list[Product]:
        links = self._links()
        return [
            Product(
                id=r["id"],
                name=r["name"],
                price=float(r.get("price") or 0),
                code=r.get("code"),
                status=r.get("status") or "active",
                veg_type=r.get("vegtype") or "veg",
                is_combo=bool(r.get("iscombo")),
                recipe=r.get("recipe") or "",
                store_ids=tuple(lk["store_id"] for lk in links if lk.get("product_id") == r["id"]),
            )
            for r in self._select("products")
        ]

    @staticmethod
    def _validate_product(product: Product, existing) -> None:
        _required(product.name, "Product name")
        if product.price < 0:
            raise SettingsValidationError("Price cannot be negative")
        if product.status not in PRODUCT_STATUSES:
            raise SettingsValidationError(f"Unknown product status: {product.status!r}")
        if product.veg_type not in VEG_TYPES:
            raise SettingsValidationError(f"Unknown veg type: {product.veg_type!r}")
        _check_unique(existing, product.name, lambda p: p.name, "Product name", product.id)

    def create_product(self, product: Product, now: datetime | None = None, rng=None) -> Product:
        existing = self.list_products()
        self._validate_product(product, existing)

        taken = {p.code for p in existing}
        code = product.code or generate_product_code(now, rng)
        attempts = 1
        while code in taken and attempts < CODE_ATTEMPTS:
            code = generate_product_code(now, rng)
            attempts += 1
        if code in taken:
            raise SettingsValidationError("Could not generate a unique product code")

        product_id = self._insert("products", [{**_product_row(product), "code": code}])[0]["id"]
        self._insert("product_stores", [{"product_id": product_id, "store_id": s} for s in product.store_ids])
        logger.info("Created product %s (%s)", product.name, code)
        return replace(product, id=product_id, code=code)

    def update_product(self, product: Product) -> None:
        existing = self.list_products()
        if product.id not in {p.id for p in existing}:
            raise SettingsValidationError(f"Unknown product: {product.id}")
        self._validate_product(product, existing)

        self._update("products", _product_row(product), "id", product.id)
        self._set_links("product_id", product.id, "store_id", product.store_ids)
        logger.info("Updated product %s", product.id)

    def delete_product(self, product_id: str) -> None:
        self._delete("product_stores", "product_id", product_id)
        self._delete("products", "id", product_id)
        logger.info("Deleted product %s", product_id)

    # -- raw materials ----------------------------------------------

    def list_raw_materials(self) -> list[RawMaterial]:
        return [
            RawMaterial(
                id=r["id"],
                name=r["name"],
                code=r.get("code"),
                category=r.get("category") or "General",
                unit=r.get("unit_of_measurement") or "",
                current_stock=float(r.get("current_stock") or 0),
                min_stock=float(r.get("min_stock") or 0),
                max_stock=float(r.get("max_stock") or 100),
                price=float(r.get("price") or 0),
                is_active=r.get("is_active") is not False,
                storage_location=r.get("storage_location") or "",
                vendor_id=r.get("vendor_id"),
            )
            for r in self._select("raw_materials")
        ]

    @staticmethod
    def _validate_material(material: RawMaterial, existing) -> None:
        _required(material.name, "Material name")
        if min(material.current_stock, material.min_stock, material.max_stock, material.price) < 0:
            raise SettingsValidationError("Stock levels and price cannot be negative")
        _check_unique(existing, material.name, lambda m: m.name, "Raw material", material.id)

    def create_raw_material(self, material: RawMaterial, now: datetime | None = None) -> RawMaterial:
        existing = self.list_raw_materials()
        self._validate_material(material, existing)
        code = raw_material_code(now or datetime.now(), len(existing) + 1)

        row = self._insert("raw_materials", [{**_material_row(material), "code": code}])[0]
        logger.info("Created raw material %s (%s)", material.name, code)
        return replace(material, id=row["id"], code=code)

    def update_raw_material(self, material: RawMaterial) -> None:
        existing = self.list_raw_materials()
        if material.id not in {m.id for m in existing}:
            raise SettingsValidationError(f"Unknown raw material: {material.id}")
        self._validate_material(material, existing)
        self._update("raw_materials", _material_row(material), "id", material.id)
        logger.info("Updated raw material %s", material.id)

    def delete_raw_material(self, material_id: str) -> None:
        self._delete("raw_materials", "id", material_id)
        logger.info("Deleted raw material %s", material_id)

    # -- vendors ----------------------------------------------------

    def list_vendors(self) -> list[Vendor]:
        materials = self._select("raw_materials", newest_first=False)
        return [
            Vendor(
                id=r["id"],
                vendor_name=r["vendor_name"],
                contact_person=r.get("contact_person") or "",
                phone_number=r.get("phone_number") or "",
                email=r.get("email") or "",
                address=r.get("address") or "",
                gstin_tax_id=r.get("gstin_tax_id") or "",
                notes=r.get("notes") or "",
                raw_material_ids=tuple(m["id"] for m in materials if m.get("vendor_id") == r["id"]),
            )
            for r in self._select("vendors")
        ]

    @staticmethod
    def _validate_vendor(vendor: Vendor, existing) -> None:
        _required(vendor.vendor_name, "Vendor name")
        existing = list(existing)
        _check_unique(existing, vendor.vendor_name, lambda v: v.vendor_name, "Vendor name", vendor.id)
        _check_unique(existing, vendor.email, lambda v: v.email, "Email", vendor.id)
        _check_unique(existing, vendor.phone_number, lambda v: v.phone_number, "Phone number", vendor.id)

    def create_vendor(self, vendor: Vendor) -> Vendor:
        self._validate_vendor(vendor, self.list_vendors())

        vendor_id = self._insert("vendors", [_vendor_row(vendor)])[0]["id"]
        self._link_materials(vendor_id, vendor.raw_material_ids)
        logger.info("Created vendor %s", vendor.vendor_name)
        return replace(vendor, id=vendor_id)

    def update_vendor(self, vendor: Vendor) -> None:
        existing = self.list_vendors()
        if vendor.id not in {v.id for v in existing}:
            raise SettingsValidationError(f"Unknown vendor: {vendor.id}")
        self._validate_vendor(vendor, existing)

        self._update("vendors", _vendor_row(vendor), "id", vendor.id)
        self._link_materials(vendor.id, vendor.raw_material_ids)
        logger.info("Updated vendor %s", vendor.id)

    def delete_vendor(self, vendor_id: str) -> None:
        self._update("raw_materials", {"vendor_id": None}, "vendor_id", vendor_id)
        self._delete("vendors", "id", vendor_id)
        logger.info("Deleted vendor %s", vendor_id)
