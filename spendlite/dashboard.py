"""
SpendLite Dashboard

A Streamlit front end. All state changes go through Session.dispatch();
this module only draws the view model and turns clicks into actions.

Run with:  streamlit run spendlite/dashboard.py
"""
import pandas as pd
import plotly.express as px
import streamlit as st

from spendlite.config import get_settings
from spendlite.core.parsing import to_title_case
from spendlite.core.session import Session
from spendlite.core.state import (
    ClearCategoryFilter,
    ClearMonthFilter,
    GoToPage,
    SetCategoryFilter,
    SetMonthFilter,
    SetRuleText,
    ToggleTransactions,
)
from spendlite.exceptions import CsvIngestionError, RuleError
from spendlite.logging_setup import configure_logging
from spendlite.utils.storage import StateRepository, make_store


def get_session() -> Session:
    """One Session per browser session"""
    if 'session' not in st.session_state:
        settings = get_settings()
        configure_logging(settings.log_level)
        st.session_state.session = Session.restore(StateRepository(make_store(settings)), settings=settings)
    return st.session_state.session


def act(session: Session, action):
    session.dispatch(action)
    st.rerun()


def render_sidebar(session: Session):
    with st.sidebar:
        st.title("💸 SpendLite")
        st.divider()

        # CSV import
        st.subheader("📥 Statement")
        upload = st.file_uploader("Load CSV", type=['csv'], key='csv_upload')
        if upload is not None:
            upload_id = (upload.name, upload.size)
            if st.session_state.get('loaded_upload') != upload_id:
                try:
                    count = session.load_csv_text(upload.getvalue().decode('utf-8-sig'))
                except (CsvIngestionError, UnicodeDecodeError) as e:
                    st.error(f"Could not import {upload.name}: {e}")
                    st.stop()
                st.session_state.loaded_upload = upload_id
                st.toast(f"Loaded {count} transactions")
                st.rerun()

        st.divider()

        # Month filter
        view = session.view()
        keys = [key for key, _ in view.month_options]
        labels = dict(view.month_options)
        selected = st.selectbox(
            "Month",
            keys,
            index=keys.index(view.month_filter),
            format_func=lambda key: labels[key],
            key=f"month_{view.month_filter}",
        )
        if selected != view.month_filter:
            act(session, SetMonthFilter(selected))
        if view.month_filter and st.button("Clear month", use_container_width=True):
            act(session, ClearMonthFilter())

        st.divider()

        # Rules
        st.subheader("📚 Rules")
        rule_text = st.text_area(
            "KEYWORD => CATEGORY, one per line",
            value=session.state.rule_text,
            height=260,
            key=f"rules_{hash(session.state.rule_text)}",
        )
        if st.button("Apply rules", type="primary", use_container_width=True):
            act(session, SetRuleText(rule_text))

        st.download_button(
            "📤 Export rules",
            data=session.export_rules(),
            file_name="rules.txt",
            mime="text/plain",
            use_container_width=True,
        )
        rules_upload = st.file_uploader("📥 Import rules", type=['txt'], key='rules_upload')
        if rules_upload is not None:
            upload_id = (rules_upload.name, rules_upload.size)
            if st.session_state.get('loaded_rules') != upload_id:
                try:
                    session.import_rules_bytes(rules_upload.getvalue())
                except RuleError as e:
                    st.error(f"Could not import {rules_upload.name}: {e}")
                    st.stop()
                st.session_state.loaded_rules = upload_id
                st.rerun()


def render_totals(session: Session):
    view = session.view()

    st.subheader(f"🏷️ Category Totals: {view.month_label}")
    if not view.totals_rows:
        st.info("Load a statement CSV to see totals.")
        return

    col1, col2 = st.columns([3, 2])

    with col1:
        for row in view.totals_rows:
            c_name, c_total, c_pct = st.columns([3, 2, 1])
            with c_name:
                if st.button(to_title_case(row.category), key=f"cat_{row.category}", use_container_width=True):
                    act(session, SetCategoryFilter(row.category))
            c_total.markdown(f"`{row.total:>12.2f}`")
            c_pct.markdown(f"{row.percent:.1f}%")
        st.markdown(f"**Total:** `{view.grand_total:.2f}` (100%)")

    with col2:
        chart_df = pd.DataFrame([
            {'category': to_title_case(row.category), 'total': row.total}
            for row in view.totals_rows
        ])
        fig = px.bar(
            chart_df,
            x='total',
            y='category',
            orientation='h',
            labels={'total': 'Total', 'category': 'Category'},
        )
        fig.update_layout(showlegend=False, yaxis={'categoryorder': 'total ascending'})
        st.plotly_chart(fig, use_container_width=True)

    filename, report = session.export_totals()
    st.download_button("📥 Export totals", data=report, file_name=filename, mime="text/plain")


def render_rule_form(session: Session, index: int):
    """Inline 'create rule from this row' form"""
    suggestion = session.suggest_rule(index)
    if suggestion is None:
        return
    keyword, category = suggestion

    with st.form(key=f"rule_form_{index}"):
        st.caption(session.state.transactions[index].description)
        keyword = st.text_input("Keyword to match", value=keyword)
        category = st.text_input("Category name", value=category)
        if st.form_submit_button("Save rule"):
            try:
                session.create_rule(keyword, category)
            except RuleError as e:
                st.error(str(e))
                return
            st.rerun()


def render_transactions(session: Session):
    view = session.view()

    header_col, toggle_col = st.columns([4, 1])
    with header_col:
        title = "📝 Transactions"
        if view.category_filter:
            title += f" (filtered by \"{view.category_filter}\")"
        st.subheader(title)
    with toggle_col:
        label = "Show transactions" if view.transactions_collapsed else "Hide transactions"
        if st.button(label, use_container_width=True):
            act(session, ToggleTransactions())

    if view.category_filter and st.button("Clear filter"):
        act(session, ClearCategoryFilter())

    if view.transactions_collapsed:
        return

    display_df = pd.DataFrame([
        {
            '#': row.index,
            'Date': row.date,
            'Amount': f"{row.amount:.2f}",
            'Category': to_title_case(row.category),
            'Description': row.description,
        }
        for row in view.rows
    ])
    if display_df.empty:
        st.info("No transactions match the current filters.")
    else:
        st.dataframe(display_df, use_container_width=True, hide_index=True)

    # Pager
    cols = st.columns(len(view.pager) + 1)
    for col, control in zip(cols, view.pager):
        with col:
            if st.button(control.label, key=f"page_{control.label}",
                         disabled=control.disabled or control.active,
                         type="primary" if control.active else "secondary"):
                act(session, GoToPage(control.page))
    cols[-1].caption(f"Page {view.page} / {view.total_pages}")

    # Create rule from a row
    if view.rows:
        indices = [row.index for row in view.rows]
        choice = st.selectbox(
            "➕ Create rule from row",
            [None] + indices,
            format_func=lambda i: "Select a row" if i is None else f"#{i} {session.state.transactions[i].description[:60]}",
            key='rule_row',
        )
        if choice is not None:
            render_rule_form(session, choice)


def main():
    """Main dashboard app"""
    st.set_page_config(page_title="SpendLite", page_icon="💸", layout="wide")

    session = get_session()
    render_sidebar(session)

    view = session.view()
    st.markdown(f"### 💸 SpendLite: {view.month_label}")
    st.info(view.summary_line)
    st.caption(view.totals_bar)

    render_totals(session)
    st.divider()
    render_transactions(session)


if __name__ == "__main__":
    main()
