import logging
from typing import Any, Callable, Dict, Optional

import pandas as pd
import streamlit as st

from config import Settings, configure_logging, load_settings
from domain.errors import UpstreamError
from domain.models import Bill
from google_client import get_drive_service
from services.report_service import line_items_frame
from storage.base import BillingStore
from storage.factory import create_store
from utils.formatting import format_bill_date, format_currency, format_quantity

logger = logging.getLogger(__name__)

CONFIRM_TITLE = "Confirm"
CONFIRM_YES = "Yes"
CONFIRM_NO = "No"


@st.cache_resource
def get_settings() -> Settings:
    settings = load_settings()
    configure_logging(settings.log_level)
    return settings


@st.cache_resource
def get_store() -> BillingStore:
    return create_store(get_settings())


@st.cache_resource
def get_drive():
    """Drive client for product images, or None when Google is not configured."""
    try:
        return get_drive_service(get_settings())
    except UpstreamError as e:
        logger.warning("Image uploads disabled: %s", e.message)
        return None


def require_login() -> None:
    """Stop rendering the page unless the session has logged in on the main page."""
    if not st.session_state.get("authenticated"):
        st.warning("Please log in on the dashboard page first.")
        st.stop()

    with st.sidebar:
        if st.button("Logout", key="logout_btn"):
            st.session_state["authenticated"] = False
            st.rerun()


@st.dialog(CONFIRM_TITLE)
def confirmation_dialog(
        value: Dict[str, Any],
        action: Callable[[], Dict[str, Any]],
        state_name: str,
):
    """
    Show `value` as a Key/Value table and run `action` on "Yes".
    `action` returns a billing_api envelope; its result is stored in
    st.session_state[state_name].
    """
    df = pd.DataFrame(list(value.items()), columns=["Key", "Value"])
    df["Value"] = df["Value"].astype("string")
    st.dataframe(df, hide_index=True)

    col_yes, col_no = st.columns(2)

    with col_yes:
        if st.button(CONFIRM_YES, type="primary", key="confirm_yes"):
            result = action()
            st.session_state[state_name] = result
            if not result["success"]:
                st.error(result["error"])
            else:
                st.rerun()
    with col_no:
        if st.button(CONFIRM_NO, key="confirm_no"):
            st.session_state[state_name] = None
            st.rerun()


def show_result(state_name: str, success_text: str) -> Optional[Dict[str, Any]]:
    result = st.session_state.get(state_name)
    if result and result["success"]:
        st.success(success_text)
    elif result:
        st.error(result["error"])
    return result


def render_bill_preview(bill: Bill, settings: Settings) -> None:
    symbol = settings.currency_symbol

    st.markdown(f"### INVOICE\n{settings.store_header}")
    st.write(f"**Bill #:** {bill.bill_number}  \n**Date:** {format_bill_date(bill.issue_date, '%d/%m/%Y')}")

    st.markdown("**Bill To:**")
    lines = [bill.customer_name]
    if bill.customer_address:
        lines.append(bill.customer_address)
    if bill.customer_phone:
        lines.append(f"Ph: {bill.customer_phone}")
    st.write("  \n".join(lines))

    df = line_items_frame(bill)
    df["Qty"] = df["Qty"].apply(format_quantity)
    df["Price"] = df["Price"].apply(lambda x: format_currency(x, symbol))
    df["Total"] = df["Total"].apply(lambda x: format_currency(x, symbol))
    st.dataframe(df, hide_index=True, use_container_width=True)

    st.write(f"Subtotal: **{format_currency(bill.subtotal, symbol)}**")
    if bill.tax_amount > 0:
        st.write(f"Tax: **{format_currency(bill.tax_amount, symbol)}**")
    st.metric("TOTAL", format_currency(bill.total, symbol))
    st.caption("Thank you for your business!")
