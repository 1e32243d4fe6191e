import streamlit as st

from billing_api import list_bills, list_inventory, login
from domain.models import Bill
from element_component import get_settings, get_store
from services.report_service import summarize_sales
from utils.formatting import format_currency

st.set_page_config(
    page_title="Billing Dashboard",
    page_icon="💰"
)

settings = get_settings()

if "authenticated" not in st.session_state:
    st.session_state["authenticated"] = False

# -------------------------------------------------------------------
# Login
# -------------------------------------------------------------------

if not st.session_state["authenticated"]:
    st.title("🔒 Admin Login")

    with st.form("login_form", enter_to_submit=True):
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Login")

    if submitted:
        result = login(password, settings)
        if result["success"]:
            st.session_state["authenticated"] = True
            st.rerun()
        else:
            st.error(result["error"])

    st.stop()

# -------------------------------------------------------------------
# Dashboard
# -------------------------------------------------------------------

st.title("💰 Billing Software - Admin Dashboard")
st.sidebar.header("💰 Dashboard")

if st.sidebar.button("Logout"):
    st.session_state["authenticated"] = False
    st.rerun()

store = get_store()
bills_resp = list_bills(store)
inventory_resp = list_inventory(store)

if not bills_resp["success"]:
    st.error(f"Could not load bills: {bills_resp['error']}")
if not inventory_resp["success"]:
    st.error(f"Could not load inventory: {inventory_resp['error']}")

bills = [Bill.from_dict(b) for b in bills_resp.get("bills", [])]
summary = summarize_sales(bills)

col_bills, col_sales, col_items = st.columns(3)
col_bills.metric("Total Bills", summary.bill_count)
col_sales.metric("Total Sales", format_currency(summary.total_sales, settings.currency_symbol))
col_items.metric("Inventory Items", len(inventory_resp.get("items", [])))

st.divider()
st.write(
    "Use the pages in the sidebar to manage **Inventory**, **Create Bill** from "
    "selected items, view the **Sales Report**, or **Sync** data to Google Sheets."
)
st.caption(f"Storage backend: {settings.storage_backend}")
