"""Streamlit frontend for the training and demo-engagement dashboard."""

from __future__ import annotations

import dataclasses
from typing import Any

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from lms_insights.config import get_dashboard_settings
from lms_insights.failure_codes import ENGAGEMENT_SOURCE_MISSING
from lms_insights.logging_utils import configure_logging
from lms_insights.schemas.filters import EngagementFilterSpecification, FilterSpecification
from lms_insights.services.dashboard_service import DashboardService
from lms_insights.services.dataset_loader import DashboardDataset, DatasetLoader
from lms_insights.services.engagement_analytics_service import EngagementAnalyticsService
from lms_insights.services.training_analytics_service import TrainingAnalyticsService

st.set_page_config(page_title="Training Insights", page_icon="TI", layout="wide")


@st.cache_resource(show_spinner=False)
def _load_backend_handles() -> dict[str, Any]:
    """Build the stateless backend services once per process."""
    configure_logging(get_dashboard_settings().log_level)
    return {
        "loader": DatasetLoader(),
        "dashboard": DashboardService(),
        "training": TrainingAnalyticsService(),
        "engagement": EngagementAnalyticsService(),
    }


def _frame(rows: list[Any]) -> pd.DataFrame:
    """Turn a list of result dataclasses into a display table."""
    return pd.DataFrame([dataclasses.asdict(row) for row in rows])


def _percent(value: float) -> str:
    return f"{value:.1f}%"


handles = _load_backend_handles()
loader: DatasetLoader = handles["loader"]

if "dataset" not in st.session_state:
    with st.spinner("Loading exports..."):
        st.session_state.dataset = loader.load_all()

dataset: DashboardDataset = st.session_state.dataset


with st.sidebar:
    st.header("Data")
    if st.button("Reload exports", use_container_width=True):
        with st.spinner("Loading exports..."):
            st.session_state.dataset = loader.load_all()
        st.rerun()

    lms_upload = st.file_uploader("LMS export", type=["csv"], key="lms_upload")
    if lms_upload is not None and st.button("Load LMS file", use_container_width=True):
        st.session_state.dataset = loader.load_lms_bytes(lms_upload.getvalue(), dataset)
        st.rerun()

    engagement_upload = st.file_uploader("StoryLane export", type=["csv"], key="engagement_upload")
    if engagement_upload is not None and st.button("Load StoryLane file", use_container_width=True):
        st.session_state.dataset = loader.load_engagement_bytes(engagement_upload.getvalue(), dataset)
        st.rerun()

    training_service: TrainingAnalyticsService = handles["training"]
    engagement_service: EngagementAnalyticsService = handles["engagement"]
    records = dataset.training_records

    st.header("Filters")
    month_options = training_service.available_months(records)
    month_values = ["all", *[option.value for option in month_options]]
    month_labels = {option.value: option.label for option in month_options}
    month_labels["all"] = "All months"
    start_month = st.selectbox("From", month_values, format_func=month_labels.get)
    end_month = st.selectbox("To", month_values, format_func=month_labels.get)

    categories = st.multiselect(
        "Categories",
        [category.value for category in training_service.available_categories(records)],
    )
    course = "all"
    if categories == ["eLearning"]:
        course = st.selectbox("Course", ["all", *training_service.elearning_courses(records)])
    country = st.radio("Country", ["all", "uk", "international"], horizontal=True)
    qualification = st.radio("Qualification", ["all", "vq", "gq"], horizontal=True)
    search = st.text_input("Search")
    demo_type = st.selectbox(
        "Demo",
        ["all", *engagement_service.demo_names(dataset.engagement_records)],
    )


st.title("Training Insights")

if dataset.lms_error:
    st.error(f"LMS data could not be loaded: {dataset.lms_error}")
    st.caption("Use Reload exports or upload the LMS file from the sidebar to retry.")
if ENGAGEMENT_SOURCE_MISSING in dataset.failure_codes:
    st.caption("StoryLane export not found; demo engagement is empty.")

try:
    spec = FilterSpecification(
        start_month=start_month,
        end_month=end_month,
        categories=tuple(categories),
        country=country,
        qualification_type=qualification,
        course=course,
        search=search,
    )
    engagement_spec = EngagementFilterSpecification(
        start_month=start_month,
        end_month=end_month,
        country=country,
        qualification_type=qualification,
        demo_type=demo_type,
        search=search,
    )
except ValidationError as exc:
    st.error(f"Invalid filter selection: {exc.errors()[0]['msg']}")
    st.stop()

dashboard: DashboardService = handles["dashboard"]
snapshot = dashboard.build_snapshot(
    records,
    spec,
    dataset.engagement_records,
    engagement_spec,
)

st.subheader("Key statistics")
stats = snapshot.key_statistics
col1, col2, col3, col4 = st.columns(4)
col1.metric("Webinar enrollments", stats.total_webinar_enrollments)
col2.metric("Avg completion rate", _percent(stats.average_completion_rate))
col3.metric("UK learners", _percent(stats.uk_percentage))
col4.metric("Avg time spent (min)", f"{stats.average_time_spent:.0f}")
st.caption(f"{snapshot.record_count} of {len(records)} enrollment record(s) match the filters.")

st.subheader("Completion rates")
rates = snapshot.completion_rates
st.bar_chart(
    pd.DataFrame(
        {
            "category": ["Live webinar", "Recording", "eLearning"],
            "rate": [rates.live_webinar, rates.recording, rates.e_learning],
        }
    ).set_index("category")
)

geo_col, engagement_col = st.columns(2)
with geo_col:
    st.subheader("Geography")
    geo = snapshot.geographic_distribution
    st.dataframe(
        pd.DataFrame({"region": ["UK", "International"], "learners": [geo.uk, geo.international]}),
        use_container_width=True,
        hide_index=True,
    )
with engagement_col:
    st.subheader("Engagement")
    st.metric("Avg time spent (min)", f"{snapshot.engagement_metrics.time_spent:.1f}")
    st.metric("Avg progress", _percent(snapshot.engagement_metrics.progress_percentage))

if snapshot.monthly_breakdown:
    st.subheader("Monthly breakdown")
    monthly = _frame(snapshot.monthly_breakdown).set_index("display_name")
    st.line_chart(monthly[["total", "completed", "in_progress", "not_started"]])

st.subheader("Webinar enrollments")
webinar_frame = _frame(snapshot.webinar_enrollments.webinar_details)
if webinar_frame.empty:
    st.info("No webinar enrollments.")
else:
    st.dataframe(webinar_frame, use_container_width=True, hide_index=True)

if snapshot.category_detail is not None:
    detail = snapshot.category_detail
    st.subheader(f"{categories[0]} detail")
    st.json(detail.status_counts)
    st.caption(
        f"Avg time {detail.avg_time_spent:.1f} min, avg progress {_percent(detail.avg_progress)}, "
        f"avg quiz {detail.avg_quiz_score:.1f}"
    )
    st.dataframe(_frame(detail.top_courses), use_container_width=True, hide_index=True)

st.subheader("Demo engagement")
if not dataset.engagement_records:
    st.info("No StoryLane data loaded.")
else:
    summary = snapshot.engagement_summary
    if summary is not None:
        dcol1, dcol2, dcol3 = st.columns(3)
        dcol1.metric("Views", summary.total_views)
        dcol2.metric("CTA click rate", _percent(summary.cta_click_rate))
        dcol3.metric("Avg completion", _percent(summary.avg_percent_complete))
    overview = _frame(snapshot.demo_overview)
    if not overview.empty:
        st.dataframe(
            overview.drop(columns=["countries_breakdown"]),
            use_container_width=True,
            hide_index=True,
        )
    countries = _frame(snapshot.top_countries)
    if not countries.empty:
        st.bar_chart(countries.set_index("country"))
