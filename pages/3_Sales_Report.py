from datetime import date

import streamlit as st

from billing_api import get_bill, sales_report
from domain.models import Bill
from element_component import get_settings, get_store, render_bill_preview, require_login
from services.bill_document_service import render_bill_document
from services.period_filter import PERIODS
from services.report_service import bills_to_frame
from utils.formatting import format_bill_date, format_currency

st.set_page_config(page_title="Sales Report", page_icon="📊")
st.sidebar.header("📊 Sales Report")

require_login()

settings = get_settings()
store = get_store()

PERIOD_LABELS = {
    "all": "All Time",
    "day": "Day",
    "week": "Week",
    "month": "Month",
    "year": "Year",
}

col_period, col_date = st.columns(2)
with col_period:
    period = st.selectbox("Period", PERIODS, format_func=PERIOD_LABELS.get)
with col_date:
    reference_date = st.date_input("Reference date", value=date.today(), disabled=period == "all")

report = sales_report(store, period, reference_date, strict=settings.strict_bill_dates)
if not report["success"]:
    st.error(report["error"])
    st.stop()

st.subheader(f"Sales Report: {report['label']}")

col_count, col_total = st.columns(2)
col_count.metric("Total Bills", report["billCount"])
col_total.metric("Total Sales", format_currency(report["totalSales"], settings.currency_symbol))

bills = [Bill.from_dict(b) for b in report["bills"]]

if not bills:
    st.info("No bills found")
    st.stop()

df = bills_to_frame(bills)
df_display = df.copy()
df_display["Date"] = df_display["Date"].apply(format_bill_date)
for col in ("Subtotal", "Tax", "Total"):
    df_display[col] = df_display[col].apply(lambda x: format_currency(x, settings.currency_symbol))

st.dataframe(df_display, hide_index=True, use_container_width=True)

st.download_button(
    "Download as CSV",
    data=df.to_csv(index=False).encode("utf-8"),
    file_name=f"sales_report_{period}_{reference_date.isoformat()}.csv",
    mime="text/csv",
)

st.divider()

# -------------------------------------------------------------------
# Bill details
# -------------------------------------------------------------------

bill_number = st.selectbox(
    "View bill",
    [b.bill_number for b in bills],
    index=None,
    placeholder="Select a bill",
)

if bill_number:
    resp = get_bill(store, bill_number)
    if not resp["success"]:
        st.error(resp["error"])
    else:
        bill = Bill.from_dict(resp["bill"])
        render_bill_preview(bill, settings)
        st.download_button(
            "Print / Download (.docx)",
            data=render_bill_document(
                bill,
                store_header=settings.store_header,
                currency_symbol=settings.currency_symbol,
            ),
            file_name=f"{bill.bill_number}.docx",
            mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )
