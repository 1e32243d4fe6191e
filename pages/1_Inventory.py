import base64
import time

import pandas as pd
import streamlit as st

from billing_api import (
    add_inventory_item,
    delete_inventory_item,
    list_inventory,
    update_inventory_item,
    upload_image,
)
from domain.models import InventoryItem
from element_component import (
    confirmation_dialog,
    get_drive,
    get_settings,
    get_store,
    require_login,
    show_result,
)
from services.inventory_service import search_inventory
from utils.formatting import format_currency

st.set_page_config(page_title="Inventory", page_icon="📦")
st.sidebar.header("📦 Inventory")

require_login()

settings = get_settings()
store = get_store()
drive = get_drive()

for state in ("inventory_add_state", "inventory_edit_state", "inventory_delete_state"):
    st.session_state.setdefault(state, None)


def _upload(file) -> str:
    """Upload a Streamlit UploadedFile to Drive; returns the link or '' on failure."""
    if file is None:
        return ""
    if drive is None:
        st.warning("Google Drive is not configured; image was not uploaded.")
        return ""

    encoded = base64.b64encode(file.getvalue()).decode("ascii")
    data_url = f"data:{file.type or 'image/jpeg'};base64,{encoded}"
    file_name = f"{int(time.time() * 1000)}-{file.name}"

    result = upload_image(drive, data_url, file_name, settings)
    if not result["success"]:
        st.error(f"Image upload failed: {result['error']}")
        return ""
    return result["imageUrl"]


# -------------------------------------------------------------------
# Current inventory
# -------------------------------------------------------------------

resp = list_inventory(store)
if not resp["success"]:
    st.error(f"Could not load inventory: {resp['error']}")
    st.stop()

catalog = [InventoryItem.from_dict(row) for row in resp["items"]]

st.subheader("Inventory")
search = st.text_input("Search items...", key="inventory_search")
shown = search_inventory(catalog, search)

if not shown:
    st.info("No items found")
else:
    df = pd.DataFrame([i.to_dict() for i in shown])[["id", "name", "price", "description", "imageUrl"]]
    df["price"] = df["price"].apply(lambda x: format_currency(x, settings.currency_symbol))
    df = df.rename(columns={
        "id": "ID",
        "name": "Product Name",
        "price": "Price",
        "description": "Description",
        "imageUrl": "Image URL",
    })
    st.dataframe(df, hide_index=True, use_container_width=True)

st.divider()

# -------------------------------------------------------------------
# Add item
# -------------------------------------------------------------------

with st.form("inventory_add_form", enter_to_submit=False, clear_on_submit=True):
    st.subheader("Add Item")
    name = st.text_input("Product Name")
    price = st.number_input("Price", min_value=0.0, step=1.0, format="%.2f")
    description = st.text_area("Description")
    image = st.file_uploader("Image", type=["png", "jpg", "jpeg", "gif", "webp"])

    if st.form_submit_button("Add"):
        st.session_state["inventory_add_state"] = None
        if not name.strip():
            st.error("Name and price are required")
        else:
            payload = {
                "name": name.strip(),
                "price": price,
                "description": description,
                "imageUrl": _upload(image),
            }
            st.session_state["inventory_add_state"] = add_inventory_item(store, payload)
            st.rerun()

show_result("inventory_add_state", "Item added")

st.divider()

# -------------------------------------------------------------------
# Edit / delete item
# -------------------------------------------------------------------

if catalog:
    st.subheader("Edit Item")
    by_label = {f"{item.name} ({item.id})": item for item in catalog}
    label = st.selectbox("Item", list(by_label.keys()), index=None, placeholder="Select an item")

    if label:
        item = by_label[label]

        if item.image_ref:
            st.caption(f"Current image: {item.image_ref}")

        with st.form("inventory_edit_form", enter_to_submit=False):
            new_name = st.text_input("Product Name", value=item.name)
            new_price = st.number_input("Price", min_value=0.0, step=1.0, value=float(item.unit_price), format="%.2f")
            new_description = st.text_area("Description", value=item.description)
            new_image = st.file_uploader("Replace image", type=["png", "jpg", "jpeg", "gif", "webp"])

            if st.form_submit_button("Save"):
                fields = {"id": item.id}
                if new_name.strip() != item.name:
                    fields["name"] = new_name.strip()
                if new_price != item.unit_price:
                    fields["price"] = new_price
                if new_description != item.description:
                    fields["description"] = new_description
                image_url = _upload(new_image)
                if image_url:
                    fields["imageUrl"] = image_url

                st.session_state["inventory_edit_state"] = update_inventory_item(store, fields)
                st.rerun()

        if st.button("Delete Item", type="secondary"):
            confirmation_dialog(
                {"ID": item.id, "Product Name": item.name},
                lambda: delete_inventory_item(store, item.id, drive),
                "inventory_delete_state",
            )

show_result("inventory_edit_state", "Item updated")
show_result("inventory_delete_state", "Item deleted")
