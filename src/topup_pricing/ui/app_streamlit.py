"""
Streamlit admin console for the top-up storefront.

Features:
- Quote builder showing member vs storefront prices
- Catalog view with storewide discount editor
- Member pricing editor with cohort-wide bulk apply/delete
- Member ranking and cohort management
"""
import streamlit as st
import pandas as pd
from datetime import datetime

from topup_pricing.api.state import get_services
from topup_pricing.engine import CartLine, ValidationError, NotFoundError
from topup_pricing.engine.discount_resolver import is_on_discount, to_utc
from topup_pricing.services import BulkScope, EditSession, window_bound


st.set_page_config(
    page_title="Top-up Pricing Console",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_services_cached():
    """Get cached service container."""
    return get_services()


try:
    services = get_services_cached()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()

currency = services.settings.currency_symbol


def show_outcome(outcome):
    """Success when every write applied, error with the count otherwise."""
    if outcome.attempted == 0:
        st.info(outcome.message())
    elif outcome.is_partial_failure:
        st.error(f"Only {outcome.message()}")
    else:
        st.success(outcome.message())


if 'cart' not in st.session_state:
    st.session_state.cart = {}
if 'edit_session' not in st.session_state:
    st.session_state.edit_session = EditSession()
edit_session: EditSession = st.session_state.edit_session

products = services.catalog.list_products()
products_by_id = {p.id: p for p in products}
buyers = services.buyers.list_buyers()

# ============================================================================
# SIDEBAR: Buyer Context
# ============================================================================
with st.sidebar:
    st.header("👤 Buyer Context")

    buyer_options = ["(guest)"] + [b.id for b in buyers]
    buyer_labels = {b.id: f"{b.name} ({b.cohort_tag})" for b in buyers}
    selected_buyer = st.selectbox(
        "Buyer",
        options=buyer_options,
        format_func=lambda b: buyer_labels.get(b, b),
    )
    buyer_id = None if selected_buyer == "(guest)" else selected_buyer

    if buyer_id:
        override_count = len(services.ledger.list_for_buyer(buyer_id))
        st.caption(f"**Member prices:** {override_count}")

    st.divider()
    counts = services.buyers.cohort_counts()
    st.caption(f"Backend: `{services.backend}`")
    st.caption(f"{counts['active_resellers']} active resellers · {counts['active_end_users']} active end users")


st.title("Top-up Pricing Console")
st.caption(f"{datetime.now().strftime('%Y-%m-%d %H:%M')}")

tab1, tab2, tab3, tab4 = st.tabs(["⚡ Quote", "📚 Catalog", "🏷️ Member Pricing", "🏆 Members"])


# ============================================================================
# TAB 1: QUOTE BUILDER
# ============================================================================
with tab1:
    col1, col2 = st.columns([1.6, 1.4], gap="large")

    with col1:
        st.subheader("Add Packages")
        with st.container(border=True):
            package_keys = [
                (p.id, v.id) for p in products if p.available for v in p.ordered_variants()
            ]
            selected = st.selectbox(
                "Package",
                options=package_keys,
                format_func=lambda k: f"{products_by_id[k[0]].name} | {products_by_id[k[0]].get_variant(k[1]).name}",
            )
            quantity = st.number_input("Qty", min_value=1, value=1, step=1)
            if st.button("➕ Add to Quote", type="primary") and selected:
                st.session_state.cart[selected] = st.session_state.cart.get(selected, 0) + int(quantity)
                st.rerun()

    with col2:
        st.subheader("Quote Summary")
        with st.container(border=True):
            if st.session_state.cart:
                lines = [CartLine(pid, vid, qty) for (pid, vid), qty in st.session_state.cart.items()]
                try:
                    quote = services.engine.quote(buyer_id, lines)
                except NotFoundError as e:
                    st.error(str(e))
                    st.session_state.cart = {}
                    st.stop()

                m1, m2 = st.columns(2)
                m1.metric("Total", f"{currency}{quote.total:,.2f}")
                m2.metric("Items", sum(st.session_state.cart.values()))

                for warning in quote.warnings:
                    st.warning(warning)

                st.dataframe(pd.DataFrame([{
                    'Game': line.product_name,
                    'Package': line.variant_name,
                    'Qty': line.quantity,
                    'Unit': line.unit_price,
                    'Total': line.extended_price,
                    'Source': line.source,
                } for line in quote.lines]), use_container_width=True, hide_index=True)

                with st.expander("🧾 Order message summary"):
                    st.code(quote.summary_text(currency))

                with st.expander("🔍 Resolution trace"):
                    for line in quote.lines:
                        st.caption(f"**{line.product_name} / {line.variant_name}**")
                        st.text(line.get_trace_text())

                if st.button("🗑️ Clear", use_container_width=True):
                    st.session_state.cart = {}
                    st.rerun()
            else:
                st.info("🛒 Cart is empty")


# ============================================================================
# TAB 2: CATALOG & STOREWIDE DISCOUNTS
# ============================================================================
with tab2:
    st.subheader("📚 Catalog")

    catalog_rows = []
    for p in products:
        for v in p.ordered_variants():
            catalog_rows.append({
                'Game': p.name,
                'Package': v.name,
                'Price': v.price,
                'On Sale': is_on_discount(p),
                'Discount %': p.discount.percentage,
                'Available': p.available,
            })
    st.dataframe(pd.DataFrame(catalog_rows), use_container_width=True, hide_index=True)

    st.divider()
    st.subheader("Storewide Discount")
    if products:
        product_id = st.selectbox(
            "Game", options=[p.id for p in products],
            format_func=lambda pid: products_by_id[pid].name, key="discount_game"
        )
        product = products_by_id[product_id]
        with st.form("discount_form"):
            percentage = st.number_input(
                "Percentage", min_value=0.0, max_value=100.0,
                value=float(product.discount.percentage or 0.0), step=1.0
            )
            active = st.checkbox("Enable discount", value=product.discount.active)
            stored_start, stored_end = to_utc(product.discount.start), to_utc(product.discount.end)
            c1, c2, c3, c4 = st.columns(2 * [1.4, 1])
            start_day = c1.date_input("Start (optional)", value=stored_start.date() if stored_start else None)
            start_clock = c2.time_input("Start time (UTC)", value=stored_start.time() if stored_start else None)
            end_day = c3.date_input("End (optional)", value=stored_end.date() if stored_end else None)
            end_clock = c4.time_input("End time (UTC)", value=stored_end.time() if stored_end else None)
            st.caption("Leave dates empty for an indefinite discount period. "
                       "An end date without a time runs to the end of that day.")

            if st.form_submit_button("💾 Save Discount"):
                try:
                    services.catalog.set_storewide_discount(
                        product_id, percentage, active,
                        window_bound(start_day, start_clock, stored_start),
                        window_bound(end_day, end_clock, stored_end, end_of_day=True),
                    )
                    st.toast("Discount saved")
                    st.rerun()
                except ValidationError as e:
                    for err in e.errors:
                        st.error(err)


# ============================================================================
# TAB 3: MEMBER PRICING (BULK OVERRIDES)
# ============================================================================
with tab3:
    st.subheader("🏷️ Member Pricing")

    c1, c2 = st.columns(2)
    cohort = c1.radio("Target", ["reseller", "end_user"], horizontal=True,
                      format_func=lambda c: "Resellers" if c == "reseller" else "Members")
    all_games = c2.checkbox("Apply to all games")
    members = services.buyers.cohort_members(cohort)
    st.caption(f"{len(members)} active {cohort.replace('_', ' ')}(s) will be targeted")

    game_id = None
    if not all_games and products:
        game_id = st.selectbox(
            "Game", options=[p.id for p in products],
            format_func=lambda pid: products_by_id[pid].name, key="pricing_game"
        )

    with st.container(border=True):
        st.markdown("##### Set for all packages")
        bulk_draft = edit_session.bulk_draft
        b1, b2, b3 = st.columns(3)
        edit_session.update_bulk_draft(
            discount_percentage=b1.number_input("Discount %", 0.0, 100.0, bulk_draft.discount_percentage),
            capital_price=b2.number_input("Capital price", 0.0, value=bulk_draft.capital_price),
            selling_price=b3.number_input("Selling price", 0.0, value=bulk_draft.selling_price),
        )
        st.caption(f"Profit per package: {currency}{bulk_draft.selling_price - bulk_draft.capital_price:,.2f}")

        if st.button("💾 Save All", type="primary"):
            scope = BulkScope.all_products() if all_games else BulkScope.product(game_id)
            try:
                show_outcome(services.bulk.apply(cohort, scope, bulk_draft))
                edit_session.take_bulk_draft()
            except (ValidationError, NotFoundError) as e:
                st.error(str(e))

    if game_id:
        product = products_by_id[game_id]
        sample = members[0].id if members else None
        existing = services.ledger.get(sample, game_id) if sample else []
        rows = edit_session.load_rows(product, existing)

        st.markdown("##### Per package")
        for row in rows:
            r1, r2, r3, r4, r5 = st.columns([2, 1, 1, 1, 1.4])
            r1.write(f"**{row.variant_name}**")
            if edit_session.editing_id == row.variant_id:
                draft = edit_session.draft_for(row.variant_id)
                pct = r2.number_input("%", 0.0, 100.0, draft.discount_percentage, key=f"pct_{row.variant_id}")
                cap = r3.number_input("Capital", 0.0, value=draft.capital_price, key=f"cap_{row.variant_id}")
                sell = r4.number_input("Selling", 0.0, value=draft.selling_price, key=f"sell_{row.variant_id}")
                edit_session.update_draft(row.variant_id, discount_percentage=pct, capital_price=cap, selling_price=sell)
                s1, s2 = r5.columns(2)
                if s1.button("Save", key=f"save_{row.variant_id}"):
                    values = edit_session.finish_edit()
                    show_outcome(services.bulk.apply(cohort, BulkScope.single(game_id, row.variant_id), values))
                if s2.button("✕", key=f"cancel_{row.variant_id}"):
                    edit_session.cancel()
                    st.rerun()
            else:
                r2.write(f"{row.values.discount_percentage:g}%")
                r3.write(f"{currency}{row.values.capital_price:,.2f}")
                r4.write(f"{currency}{row.values.selling_price:,.2f} (profit {currency}{row.profit:,.2f})")
                e1, e2 = r5.columns(2)
                if e1.button("Edit", key=f"edit_{row.variant_id}"):
                    edit_session.begin_edit(row.variant_id, row.values)
                    st.rerun()
                if e2.button("🗑️", key=f"del_{row.variant_id}"):
                    show_outcome(services.bulk.apply_delete(cohort, game_id, row.variant_id))

    with st.expander("📋 All member prices"):
        st.dataframe(services.ledger.to_frame(), use_container_width=True, hide_index=True)


# ============================================================================
# TAB 4: MEMBERS
# ============================================================================
with tab4:
    st.subheader("🏆 Top Members")
    st.dataframe(services.buyers.top_buyers(limit=10), use_container_width=True, hide_index=True)

    st.divider()
    st.subheader("Manage Members")
    for buyer in buyers:
        m1, m2, m3 = st.columns([2, 1.2, 1])
        m1.write(f"**{buyer.name}** · {buyer.status}")
        new_tag = m2.selectbox(
            "Cohort", ["reseller", "end_user"],
            index=0 if buyer.cohort_tag == "reseller" else 1,
            key=f"tag_{buyer.id}", label_visibility="collapsed"
        )
        if new_tag != buyer.cohort_tag:
            services.buyers.set_cohort_tag(buyer.id, new_tag)
            st.rerun()
        label = "Deactivate" if buyer.is_active else "Activate"
        if m3.button(label, key=f"status_{buyer.id}"):
            services.buyers.set_status(buyer.id, "inactive" if buyer.is_active else "active")
            st.rerun()

    if buyer_id:
        st.divider()
        st.subheader(f"Member prices for {buyer_labels.get(buyer_id, buyer_id)}")
        frame = services.ledger.to_frame(buyer_id)
        st.dataframe(frame, use_container_width=True, hide_index=True)
        for pid in sorted(set(frame['product_id'])):
            name = products_by_id[pid].name if pid in products_by_id else pid
            if st.button(f"🗑️ Delete all for {name}", key=f"delall_{pid}"):
                show_outcome(services.bulk.delete_all_for_buyer(buyer_id, pid))
