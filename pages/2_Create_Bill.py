import pandas as pd
import streamlit as st

from billing_api import list_inventory, submit_bill
from domain.errors import NotFoundError
from domain.models import Bill, Customer, InventoryItem
from element_component import get_settings, get_store, render_bill_preview, require_login
from services.bill_document_service import render_bill_document
from services.inventory_service import (
    build_line_items,
    clear_selection,
    quantity_key,
    search_inventory,
    selection_count,
    selection_total,
    set_quantity,
)
from utils.formatting import format_currency

st.set_page_config(page_title="Create Bill", page_icon="🧾")
st.sidebar.header("🧾 Create Bill")

require_login()

settings = get_settings()
store = get_store()

st.session_state.setdefault("selection", {})
st.session_state.setdefault("last_bill", None)
st.session_state.setdefault("bill_created", False)

# -------------------------------------------------------------------
# 1) Select items
# -------------------------------------------------------------------

resp = list_inventory(store)
if not resp["success"]:
    st.error(f"Could not load inventory: {resp['error']}")
    st.stop()

catalog = [InventoryItem.from_dict(row) for row in resp["items"]]
if not catalog:
    st.warning("Inventory is empty. Add items on the Inventory page first.")
    st.stop()

st.subheader("Select Items")
search = st.text_input("Search items...", key="bill_search")

for item in search_inventory(catalog, search):
    col_name, col_price, col_qty = st.columns([3, 1.5, 1])
    with col_name:
        st.markdown(f"**{item.name}**")
        if item.description:
            st.caption(item.description)
    with col_price:
        st.write(format_currency(item.unit_price, settings.currency_symbol))
    with col_qty:
        qty = st.number_input(
            "Qty",
            min_value=0,
            step=1,
            value=int(st.session_state["selection"].get(item.id, 0)),
            key=quantity_key(item.id),
            label_visibility="collapsed",
        )
    st.session_state["selection"] = set_quantity(st.session_state["selection"], item.id, qty)

selection = st.session_state["selection"]
col_count, col_total = st.columns(2)
col_count.metric("Items Selected", f"{selection_count(selection):g}")
col_total.metric("Running Total", format_currency(selection_total(catalog, selection), settings.currency_symbol))

st.divider()

# -------------------------------------------------------------------
# 2) Customer + tax
# -------------------------------------------------------------------

with st.form("bill_form", enter_to_submit=False):
    st.subheader("Customer")
    customer_name = st.text_input("Customer Name *")
    customer_address = st.text_area("Address")
    customer_phone = st.text_input("Phone")
    tax_rate = st.number_input("Tax Rate (%)", min_value=0.0, step=0.5, value=float(settings.default_tax_rate))

    submitted = st.form_submit_button("Generate Bill")

if submitted:
    try:
        items = build_line_items(catalog, selection)
    except NotFoundError as e:
        st.error(e.message)
        clear_selection(st.session_state)
        st.stop()

    if not items:
        st.error("Please select at least one item")
    else:
        result = submit_bill(
            store,
            Customer(name=customer_name, address=customer_address, phone=customer_phone),
            items,
            tax_rate,
        )
        if result["success"]:
            clear_selection(st.session_state)
            st.session_state["last_bill"] = result["bill"]
            st.session_state["bill_created"] = True
            st.rerun()
        else:
            st.error(result["error"])

# -------------------------------------------------------------------
# 3) Preview + download
# -------------------------------------------------------------------

if st.session_state.pop("bill_created", False):
    st.success("Bill generated and saved successfully!")

if st.session_state["last_bill"]:
    bill = Bill.from_dict(st.session_state["last_bill"])
    st.divider()
    render_bill_preview(bill, settings)

    st.download_button(
        "Download Bill (.docx)",
        data=render_bill_document(
            bill,
            store_header=settings.store_header,
            currency_symbol=settings.currency_symbol,
        ),
        file_name=f"{bill.bill_number}.docx",
        mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )

    csv = pd.DataFrame([i.to_dict() for i in bill.items]).to_csv(index=False).encode("utf-8")
    st.download_button("Download items as CSV", data=csv, file_name=f"{bill.bill_number}.csv", mime="text/csv")
