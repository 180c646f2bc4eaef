"""Progress chart for the Exercise Catalog viewer."""
import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st


def progress_frame(entries) -> pd.DataFrame:
    """Entries as a DataFrame sorted by date (stable for same-day sessions)."""
    df = pd.DataFrame([e.model_dump() for e in entries], columns=["date", "type", "duration", "rpe", "hrv"])
    if df.empty:
        return df
    df["date"] = pd.to_datetime(df["date"])
    return df.sort_values("date", kind="stable").reset_index(drop=True)


def render_progress_chart(entries) -> bool:
    """
    Plot daily training minutes (bars) and mean RPE (line).

    Returns:
        True if a chart was rendered, False when there is nothing to plot
    """
    df = progress_frame(entries)
    if df.empty:
        return False

    daily = df.groupby("date").agg(duration=("duration", "sum"), rpe=("rpe", "mean"))

    fig, ax = plt.subplots(figsize=(8, 3))
    ax.bar(daily.index, daily["duration"], color="#1E88E5", label="Minutes")
    ax.set_ylabel("Minutes")
    ax2 = ax.twinx()
    ax2.plot(daily.index, daily["rpe"], color="#DC3545", marker="o", label="Mean RPE")
    ax2.set_ylabel("RPE")
    ax2.set_ylim(0, 10)
    fig.autofmt_xdate()
    fig.tight_layout()
    st.pyplot(fig)
    plt.close(fig)
    return True
