###############################################################
#  OUTLETDECK – ORDERS, DASHBOARD, CUSTOMERS & SETTINGS (STREAMLIT)
###############################################################

from dataclasses import asdict, replace
from datetime import date

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from outletdeck import duckdb_loader
from outletdeck.config import ALL_STORES, load_config
from outletdeck.customers import rollup_customers, search_customers
from outletdeck.errors import DeckError
from outletdeck.filters import FilterCriteria, filter_orders, parse_week_option, week_options
from outletdeck.frames import daily_totals, format_currency, orders_to_csv, orders_to_frame
from outletdeck.logger import setup_logger
from outletdeck.metrics import compute_metrics
from outletdeck.models import ORDER_STATUSES, PAYMENT_TYPES, Customer, OrderItem
from outletdeck.order_store import OrderStore, build_order
from outletdeck.peak import resolve_peak_slot
from outletdeck.ranking import compute_top_sellers, compute_underperformer
from outletdeck.receipts import render_receipt
from outletdeck.settings import Manager, Product, RawMaterial, SettingsRepository, Store, Vendor
from outletdeck.supabase_loader import OrderRepository, get_supabase_client
from outletdeck.weekly import build_week_series, week_label

st.set_page_config(layout="wide", page_title="OutletDeck")

CFG = load_config(st.secrets)
logger = setup_logger(CFG.log_dir)


# ------------------------------------------------------------
# 1. DATA LOADING & CACHING
# ------------------------------------------------------------

@st.cache_resource(show_spinner=False)
def get_client():
    return get_supabase_client(CFG)


@st.cache_resource(show_spinner=False)
def get_repository() -> OrderRepository:
    return OrderRepository(get_client(), page_size=CFG.page_size, tz=CFG.timezone)


@st.cache_resource(show_spinner=False)
def get_settings() -> SettingsRepository:
    return SettingsRepository(get_client())


@st.cache_data(show_spinner=False)
def load_menu() -> list:
    return get_repository().fetch_menu_items()


@st.cache_data(show_spinner=False)
def load_store_names() -> list[str]:
    return get_settings().store_names()


@st.cache_data(show_spinner=True)
def load_orders() -> list:
    """Supabase orders plus the DuckDB cache of imported CSV orders."""
    db_orders = get_repository().fetch_orders()
    csv_orders = duckdb_loader.load_orders(db_file=CFG.duckdb_file, tz=CFG.timezone)
    logger.info("Total orders loaded: %d (db %d, csv %d)",
                len(db_orders) + len(csv_orders), len(db_orders), len(csv_orders))
    return db_orders + csv_orders


def get_store() -> OrderStore:
    if "order_store" not in st.session_state:
        st.session_state["order_store"] = OrderStore(load_orders())
    return st.session_state["order_store"]


def reload_store():
    load_orders.clear()
    st.session_state.pop("order_store", None)


def smart_import():
    st.sidebar.markdown("### Import historical orders (CSV)")
    uploaded = st.sidebar.file_uploader("Orders CSV", type=["csv"])
    if uploaded is None:
        return
    if st.sidebar.button("Import"):
        with st.spinner("Importing CSV into local cache ..."):
            duckdb_loader.ingest_from_bytes(uploaded.getvalue(), db_file=CFG.duckdb_file)
        reload_store()
        st.sidebar.success("Imported CSV")


# ------------------------------------------------------------
# 2. SHARED FILTER WIDGETS
# ------------------------------------------------------------

def month_options(n: int = 12) -> dict[str, str]:
    """Last `n` months, newest first: {"YYYY-MM": "Month YYYY"}."""
    today = date.today()
    opts = {}
    for i in range(n):
        p = pd.Period(today.strftime("%Y-%m"), freq="M") - i
        opts[p.strftime("%Y-%m")] = p.strftime("%B %Y")
    return opts


def store_and_month(key: str) -> tuple[str, str]:
    months = month_options()
    c1, c2 = st.columns(2)
    store = c1.selectbox("Store", load_store_names(), key=f"{key}_store")
    month = c2.selectbox("Month", list(months), format_func=months.get, key=f"{key}_month")
    return store, month


def empty_state(month: str, store: str, what: str = "orders"):
    label = pd.Period(month, freq="M").strftime("%B %Y")
    where = "all stores" if store == ALL_STORES else store
    st.info(f"No {what} found for **{label}** at **{where}**. "
            "Try selecting a different month or store.")


# ------------------------------------------------------------
# 3. DASHBOARD SECTION
# ------------------------------------------------------------

def top_sellers_donut(top_sellers) -> go.Figure:
    labels = [f"{it.name} ({it.percentage:.1f}%)" for it in top_sellers.top]
    values = [it.percentage for it in top_sellers.top]
    if top_sellers.others_percentage > 0:
        labels.append(f"Others ({top_sellers.others_percentage:.1f}%)")
        values.append(top_sellers.others_percentage)

    fig = go.Figure(
        data=[
            go.Pie(
                labels=labels,
                values=values,
                hole=0.55,
                marker=dict(line=dict(color="white", width=1)),
            )
        ]
    )
    fig.update_layout(title="<b>Top Selling Items</b>")
    return fig


def dashboard(orders: list):
    st.header("Dashboard")
    store, month = store_and_month("dash")

    filtered = filter_orders(orders, FilterCriteria(month=month, store=store))
    if not filtered:
        empty_state(month, store)
        return

    m = compute_metrics(filtered, month)
    peak = resolve_peak_slot(m.slot_counts, orders, month, store)

    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Total Orders", f"{m.total_orders:,}")
    c2.metric("Revenue", format_currency(m.total_revenue))
    c3.metric("Avg Order Value", format_currency(m.avg_order_value))
    c4.metric("Avg Orders / Day", f"{m.avg_orders_per_day:.1f}")
    c5.metric("Peak Slot", f"{peak.icon} {peak.label}" if peak else "-")

    # Week-wise chart
    st.subheader("Week-wise Orders")
    if "week_offset" not in st.session_state:
        st.session_state["week_offset"] = 0
    n1, n2, n3, n4 = st.columns([1, 3, 1, 2])
    if n1.button("◀ Prev"):
        st.session_state["week_offset"] -= 1
    if n3.button("Next ▶"):
        st.session_state["week_offset"] += 1
    offset = st.session_state["week_offset"]
    n2.markdown(f"**{week_label(month, offset)}**")
    view = n4.radio("Show", ["count", "revenue"], horizontal=True)

    week = pd.DataFrame(
        [(d.day, d.date.strftime("%d"), d.count, d.revenue) for d in build_week_series(orders, month, offset, store)],
        columns=["DAY", "DATE", "count", "revenue"],
    )
    week["LABEL"] = week["DAY"] + " " + week["DATE"]
    fig = px.bar(week, x="LABEL", y=view, text_auto=True, title="Orders by Day")
    st.plotly_chart(fig, use_container_width=True)

    # Time slots + top sellers
    c1, c2 = st.columns(2)
    with c1:
        slots = pd.DataFrame(
            [(f"{sc.slot.icon} {sc.slot.label}", sc.count) for sc in m.slot_counts],
            columns=["SLOT", "ORDERS"],
        )
        fig = px.bar(slots, x="ORDERS", y="SLOT", orientation="h", title="Orders by Time Slot")
        st.plotly_chart(fig, use_container_width=True)

    top = compute_top_sellers(filtered)
    with c2:
        if top.total_units_sold == 0:
            st.info("No sales data")
        else:
            st.plotly_chart(top_sellers_donut(top), use_container_width=True)

    under = compute_underperformer(filtered, top)
    if under:
        st.warning(f"Underperformer: **{under.name}** – {under.units_sold} sold "
                   f"({format_currency(under.revenue)})")

    trend = daily_totals(orders_to_frame(filtered))
    fig = px.line(trend, x="DATE", y="REVENUE", markers=True, title="Revenue by Day")
    st.plotly_chart(fig, use_container_width=True)


# ------------------------------------------------------------
# 4. ORDERS SECTION
# ------------------------------------------------------------

def orders_section(store_obj: OrderStore):
    st.header("Orders")
    store, month = store_and_month("orders")

    c1, c2 = st.columns([1, 3])
    week = c1.selectbox("Week", week_options(month), key="orders_week")
    term = c2.text_input("Search orders by ID, customer name, or mobile...")

    criteria = FilterCriteria(
        month=month,
        store=store,
        week_of_month=parse_week_option(week),
        search_term=term,
    )
    filtered = filter_orders(store_obj.orders, criteria)
    if not filtered:
        empty_state(month, store)
        return

    df = orders_to_frame(filtered)
    st.dataframe(
        df[["ORDER_ID", "TIMESTAMP", "CUSTOMER_NAME", "MOBILE", "OUTLET", "ITEM_COUNT",
            "PAYMENT_TYPE", "STATUS", "TOTAL"]]
        .style.format({"TOTAL": "₹{:,.0f}"}),
        use_container_width=True,
    )

    st.download_button(
        "Download CSV",
        orders_to_csv(filtered),
        file_name=f"orders-{date.today().isoformat()}.csv",
        mime="text/csv",
    )

    ids = [o.id for o in filtered]
    chosen = st.selectbox("Order", ids)
    order = store_obj.get(chosen)
    if order is None:
        return

    with st.expander("Receipt"):
        st.code(render_receipt(order))

    c1, c2 = st.columns(2)
    current = ORDER_STATUSES.index(order.status) if order.status in ORDER_STATUSES else 0
    status = c1.selectbox("Status", ORDER_STATUSES, index=current)
    if c1.button("Update status") and status != order.status:
        try:
            if order.db_id:
                get_repository().update_order_status(order.db_id, status)
            store_obj.update_status(order.id, status)
            st.success(f"Order {order.id} is now {status}")
        except DeckError as e:
            st.error(f"Failed to update order: {e}")

    confirm = c2.checkbox(f"Yes, delete order {order.id}", key=f"confirm_delete_{order.id}")
    if c2.button("Delete order", disabled=not confirm):
        if not order.db_id:
            st.error("Cannot delete order: missing database ID")
            return
        try:
            get_repository().delete_order(order.db_id)
            store_obj.remove(order.db_id)
            st.success(f"Deleted order {order.id}")
        except DeckError as e:
            st.error(f"Failed to delete order: {e}")


# ------------------------------------------------------------
# 5. CUSTOMERS SECTION
# ------------------------------------------------------------

def customers_section(orders: list):
    st.header("Customers")
    store, month = store_and_month("cust")
    term = st.text_input("Search by name or mobile")

    summaries = rollup_customers(filter_orders(orders, FilterCriteria(month=month, store=store)))
    summaries = search_customers(summaries, term)
    if not summaries:
        empty_state(month, store, what="customers")
        return

    df = pd.DataFrame(
        [
            (c.name, c.mobile, c.total_orders, c.total_spent, c.last_ordered, ", ".join(c.outlets))
            for c in summaries
        ],
        columns=["NAME", "MOBILE", "ORDERS", "TOTAL_SPENT", "LAST_ORDERED", "OUTLETS"],
    )
    c1, c2, c3 = st.columns(3)
    c1.metric("Customers", f"{len(df):,}")
    c2.metric("Repeat Customers", f"{int((df['ORDERS'] > 1).sum()):,}")
    c3.metric("Total Spent", format_currency(df["TOTAL_SPENT"].sum()))

    st.dataframe(df.style.format({"TOTAL_SPENT": "₹{:,.0f}"}), use_container_width=True)


# ------------------------------------------------------------
# 6. NEW ORDER SECTION
# ------------------------------------------------------------

def new_order_section(store_obj: OrderStore):
    st.header("New Order")

    menu = load_menu()
    if not menu:
        st.info("No active menu items found in the database.")
        return

    with st.form("new_order"):
        c1, c2, c3 = st.columns(3)
        name = c1.text_input("Customer name")
        mobile = c2.text_input("Mobile")
        outlet = c3.selectbox("Store", [s for s in load_store_names() if s != ALL_STORES])

        quantities = {}
        cols = st.columns(4)
        for i, item in enumerate(menu):
            quantities[item.id] = cols[i % 4].number_input(
                f"{item.name} (₹{item.price:,.0f})", min_value=0, max_value=50, value=0, step=1,
                key=f"qty_{item.id}",
            )

        c1, c2 = st.columns(2)
        discount = c1.number_input("Discount %", min_value=0.0, max_value=100.0, value=0.0)
        payment = c2.radio("Payment", PAYMENT_TYPES, horizontal=True)
        submitted = st.form_submit_button("Complete Order")

    if not submitted:
        return

    items = [OrderItem(item=it, quantity=int(quantities[it.id])) for it in menu if quantities[it.id] > 0]
    try:
        order = build_order(
            Customer(name=name.strip(), mobile=mobile.strip()),
            items,
            outlet=outlet,
            payment_type=payment,
            discount_percent=discount,
            tax_rate=CFG.tax_rate,
        )
        db_id = get_repository().create_order(order)
    except DeckError as e:
        st.error(f"Failed to complete order: {e}")
        return

    order = replace(order, db_id=db_id)
    store_obj.add(order)
    st.success(f"Order {order.id} saved")
    st.code(render_receipt(order))


# ------------------------------------------------------------
# 7. SETTINGS SECTION
# ------------------------------------------------------------

def records_table(records: list, drop: tuple = ()):
    if not records:
        st.info("Nothing here yet.")
        return
    df = pd.DataFrame([asdict(r) for r in records]).drop(columns=list(drop), errors="ignore")
    df.columns = [c.upper() for c in df.columns]
    st.dataframe(df, use_container_width=True)


def pick_record(records: list, label: str, key: str, name=lambda r: r.name):
    """Selectbox over existing records; None means 'create new'."""
    options = [None] + [r.id for r in records]
    by_id = {r.id: r for r in records}
    chosen = st.selectbox(
        label, options, key=key,
        format_func=lambda rid: "➕ New" if rid is None else name(by_id[rid]),
    )
    return by_id.get(chosen)


def save_record(create, update, record, what: str):
    try:
        if record.id is None:
            create(record)
            st.success(f"Created {what}")
        else:
            update(record)
            st.success(f"Updated {what}")
    except DeckError as e:
        st.error(f"Failed to save {what}: {e}")
        return
    load_store_names.clear()


def delete_record(delete, record, what: str):
    if record is None or record.id is None:
        return
    confirm = st.checkbox(f"Yes, delete {what}", key=f"confirm_{what}_{record.id}")
    if st.button(f"Delete {what}", disabled=not confirm, key=f"delete_{what}_{record.id}"):
        try:
            delete(record.id)
            st.success(f"Deleted {what}")
        except DeckError as e:
            st.error(f"Failed to delete {what}: {e}")
        load_store_names.clear()


def stores_tab(repo: SettingsRepository):
    stores, managers, products = repo.list_stores(), repo.list_managers(), repo.list_products()
    records_table(stores)

    current = pick_record(stores, "Store", "pick_store") or Store(name="")
    manager_names = {m.id: m.name for m in managers}
    product_names = {p.id: p.name for p in products}
    with st.form("store_form"):
        name = st.text_input("Name", current.name)
        address = st.text_area("Address", current.address)
        manager_options = [None] + list(manager_names)
        manager_id = st.selectbox(
            "Manager", manager_options,
            index=manager_options.index(current.manager_id) if current.manager_id in manager_names else 0,
            format_func=lambda mid: "-" if mid is None else manager_names[mid],
        )
        product_ids = st.multiselect(
            "Products", list(product_names),
            default=[p for p in current.product_ids if p in product_names],
            format_func=product_names.get,
        )
        c1, c2 = st.columns(2)
        is_central = c1.checkbox("Central kitchen", current.is_central)
        is_active = c2.checkbox("Active", current.is_active)
        if st.form_submit_button("Save store"):
            save_record(repo.create_store, repo.update_store, replace(
                current, name=name, address=address, manager_id=manager_id,
                product_ids=tuple(product_ids), is_central=is_central, is_active=is_active,
            ), "store")
    delete_record(repo.delete_store, current, "store")


def managers_tab(repo: SettingsRepository):
    managers, stores = repo.list_managers(), repo.list_stores()
    records_table(managers)

    current = pick_record(managers, "Manager", "pick_manager") or Manager(name="", phone="")
    store_names = {s.id: s.name for s in stores}
    with st.form("manager_form"):
        name = st.text_input("Name", current.name)
        phone = st.text_input("Phone", current.phone)
        address = st.text_area("Address", current.address)
        store_options = [None] + list(store_names)
        store_id = st.selectbox(
            "Store", store_options,
            index=store_options.index(current.store_id) if current.store_id in store_names else 0,
            format_func=lambda sid: "-" if sid is None else store_names[sid],
        )
        if st.form_submit_button("Save manager"):
            save_record(repo.create_manager, repo.update_manager, replace(
                current, name=name, phone=phone, address=address, store_id=store_id,
            ), "manager")
    delete_record(repo.delete_manager, current, "manager")


def products_tab(repo: SettingsRepository):
    products, stores = repo.list_products(), repo.list_stores()
    records_table(products, drop=("recipe",))

    current = pick_record(products, "Product", "pick_product") or Product(name="", price=0.0)
    store_names = {s.id: s.name for s in stores}
    with st.form("product_form"):
        c1, c2 = st.columns(2)
        name = c1.text_input("Name", current.name)
        price = c2.number_input("Price", min_value=0.0, value=float(current.price))
        c1, c2, c3 = st.columns(3)
        status = c1.selectbox("Status", ["active", "inactive"], index=0 if current.status == "active" else 1)
        veg_type = c2.selectbox("Type", ["veg", "non-veg"], index=0 if current.veg_type == "veg" else 1)
        is_combo = c3.checkbox("Combo", current.is_combo)
        store_ids = st.multiselect(
            "Stores", list(store_names),
            default=[s for s in current.store_ids if s in store_names],
            format_func=store_names.get,
        )
        recipe = st.text_area("Recipe", current.recipe)
        if st.form_submit_button("Save product"):
            save_record(repo.create_product, repo.update_product, replace(
                current, name=name, price=price, status=status, veg_type=veg_type,
                is_combo=is_combo, store_ids=tuple(store_ids), recipe=recipe,
            ), "product")
    delete_record(repo.delete_product, current, "product")


def raw_materials_tab(repo: SettingsRepository):
    materials = repo.list_raw_materials()
    if materials:
        low = [m.name for m in materials if m.stock_status in ("out-of-stock", "low-stock")]
        if low:
            st.warning("Reorder: " + ", ".join(low))
    records_table(materials)

    current = pick_record(materials, "Raw material", "pick_material") or RawMaterial(name="")
    with st.form("material_form"):
        c1, c2, c3 = st.columns(3)
        name = c1.text_input("Name", current.name)
        category = c2.text_input("Category", current.category)
        unit = c3.text_input("Unit", current.unit)
        c1, c2, c3, c4 = st.columns(4)
        current_stock = c1.number_input("Current stock", min_value=0.0, value=float(current.current_stock))
        min_stock = c2.number_input("Min stock", min_value=0.0, value=float(current.min_stock))
        max_stock = c3.number_input("Max stock", min_value=0.0, value=float(current.max_stock))
        price = c4.number_input("Price", min_value=0.0, value=float(current.price))
        storage_location = st.text_input("Storage location", current.storage_location)
        is_active = st.checkbox("Active", current.is_active)
        if st.form_submit_button("Save raw material"):
            save_record(repo.create_raw_material, repo.update_raw_material, replace(
                current, name=name, category=category, unit=unit, current_stock=current_stock,
                min_stock=min_stock, max_stock=max_stock, price=price,
                storage_location=storage_location, is_active=is_active,
            ), "raw material")
    delete_record(repo.delete_raw_material, current, "raw material")


def vendors_tab(repo: SettingsRepository):
    vendors, materials = repo.list_vendors(), repo.list_raw_materials()
    records_table(vendors)

    current = pick_record(vendors, "Vendor", "pick_vendor", name=lambda v: v.vendor_name) or Vendor(vendor_name="")
    material_names = {m.id: m.name for m in materials}
    with st.form("vendor_form"):
        c1, c2 = st.columns(2)
        vendor_name = c1.text_input("Vendor name", current.vendor_name)
        contact_person = c2.text_input("Contact person", current.contact_person)
        c1, c2, c3 = st.columns(3)
        phone_number = c1.text_input("Phone", current.phone_number)
        email = c2.text_input("Email", current.email)
        gstin = c3.text_input("GSTIN", current.gstin_tax_id)
        address = st.text_area("Address", current.address)
        material_ids = st.multiselect(
            "Raw materials supplied", list(material_names),
            default=[m for m in current.raw_material_ids if m in material_names],
            format_func=material_names.get,
        )
        notes = st.text_area("Notes", current.notes)
        if st.form_submit_button("Save vendor"):
            save_record(repo.create_vendor, repo.update_vendor, replace(
                current, vendor_name=vendor_name, contact_person=contact_person,
                phone_number=phone_number, email=email, gstin_tax_id=gstin, address=address,
                raw_material_ids=tuple(material_ids), notes=notes,
            ), "vendor")
    delete_record(repo.delete_vendor, current, "vendor")


def settings_section():
    st.header("Settings")
    repo = get_settings()
    if repo.offline:
        st.warning("Offline mode – settings changes are kept in memory only")

    tabs = st.tabs(["Stores", "Managers", "Products", "Raw Materials", "Vendors"])
    renderers = [stores_tab, managers_tab, products_tab, raw_materials_tab, vendors_tab]
    for tab, render in zip(tabs, renderers):
        with tab:
            try:
                render(repo)
            except DeckError as e:
                st.error(f"Failed to load settings: {e}")


# ------------------------------------------------------------
# 8. MAIN APP ROUTER
# ------------------------------------------------------------

def main():
    st.title("OutletDeck")

    smart_import()
    if st.sidebar.button("Refresh data"):
        reload_store()
        load_menu.clear()
        load_store_names.clear()

    store_obj = get_store()
    if get_repository().offline:
        st.sidebar.warning("Offline mode – new orders are kept for this session only")
    st.sidebar.info(f"{len(store_obj):,} orders loaded")

    section = st.sidebar.selectbox(
        "Section",
        ["DASHBOARD", "ORDERS", "CUSTOMERS", "NEW ORDER", "SETTINGS"],
    )

    if section == "DASHBOARD":
        dashboard(store_obj.orders)
    elif section == "ORDERS":
        orders_section(store_obj)
    elif section == "CUSTOMERS":
        customers_section(store_obj.orders)
    elif section == "NEW ORDER":
        new_order_section(store_obj)
    elif section == "SETTINGS":
        settings_section()


if __name__ == "__main__":
    main()
