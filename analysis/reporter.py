import os
from datetime import datetime
from typing import Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from fpdf import FPDF

from config import FUNNEL_TOP_N, RANGE_COLUMN, TYPE_COLUMN
from utils.formatting import format_output


# === PDF Report Class ===
class PDFReport(FPDF):
    def header(self):
        self.set_font('Times', 'B', 16)
        self.set_fill_color(200, 220, 255)
        self.cell(0, 12, 'Electric Vehicle Range Report', 0, 1, 'C', fill=True)
        self.ln(5)
        self.set_draw_color(50, 50, 50)
        self.line(10, self.get_y(), 200, self.get_y())
        self.ln(5)

    def add_section_title(self, title: str):
        self.set_font('Times', 'B', 14)
        self.set_fill_color(220, 220, 220)
        self.cell(0, 10, title, 0, 1, 'L', fill=True)
        self.ln(3)

    def chapter_body(self, body: str):
        self.set_font('Times', '', 12)
        cleaned_body = str(body).encode('latin-1', 'replace').decode('latin-1')
        self.multi_cell(0, 8, cleaned_body)
        self.ln(4)

    def add_table(self, df: pd.DataFrame, max_cols_per_table: int = 6):
        num_cols = len(df.columns)
        num_tables = (num_cols + max_cols_per_table - 1) // max_cols_per_table

        for t in range(num_tables):
            start_col = t * max_cols_per_table
            end_col = min((t + 1) * max_cols_per_table, num_cols)
            sub_df = df.iloc[:, start_col:end_col]

            self.set_font('Times', 'B', 8)
            col_width = (self.w - 2 * self.l_margin) / len(sub_df.columns)
            row_height = self.font_size * 1.6

            # Header
            self.set_fill_color(200, 220, 255)
            for col_name in sub_df.columns:
                readable_name = str(col_name).replace('_', ' ').title()
                self.cell(col_width, row_height, readable_name, border=1, align='C', fill=True)
            self.ln(row_height)

            # Rows
            self.set_font('Times', '', 8)
            for _, row in sub_df.iterrows():
                for item in row:
                    text = f"{item:.3f}" if isinstance(item, float) else str(item)
                    text = text.encode('latin-1', 'replace').decode('latin-1')[:40]
                    self.cell(col_width, row_height, text, border=1, align='C')
                self.ln(row_height)

            self.ln(4)

    def add_image(self, path: str, title: str):
        self.add_section_title(title)
        self.image(path, x=15, w=180)
        self.ln(4)


# === Plots ===
def save_group_means_plot(means: pd.DataFrame, path: str) -> str:
    plt.figure(figsize=(8, 6))
    ax = sns.barplot(data=means, x=TYPE_COLUMN, y="avg_electric_range", hue=TYPE_COLUMN, legend=False)
    for container in ax.containers:
        ax.bar_label(container, fmt="%.1f", padding=3)
    plt.title("Avg range for respective EV type")
    plt.xlabel("Type")
    plt.ylabel("Miles")
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def save_range_histogram(histogram: pd.DataFrame, path: str) -> str:
    """Plots the per-type counts computed by ``range_histogram``."""
    edges = sorted(set(histogram["bin_left"]) | {histogram["bin_right"].max()})
    plt.figure(figsize=(10, 6))
    sns.histplot(data=histogram, x="bin_left", weights="count", hue=TYPE_COLUMN, bins=edges, alpha=0.7)
    plt.title("Range distribution for EV-type")
    plt.xlabel("Range(miles)")
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def save_correlation_funnel(funnel: pd.DataFrame, path: str, top_n: int = FUNNEL_TOP_N) -> str:
    order = (
        funnel.assign(strength=funnel["correlation"].abs())
        .groupby("feature", sort=False)["strength"].max()
        .sort_values(ascending=False, kind="stable")
        .index.tolist()[:top_n]
    )
    funnel = funnel[funnel["feature"].isin(order)]
    data = funnel.assign(sign=funnel["correlation"].ge(0).map({True: "positive", False: "negative"}))
    plt.figure(figsize=(10, max(4, 0.5 * len(order) + 2)))
    sns.stripplot(
        data=data, x="correlation", y="feature", order=order,
        hue="sign", palette={"positive": "#2c3e50", "negative": "#e31a1c"}, size=8, jitter=False,
    )
    plt.axvline(0, color="grey", linewidth=1)
    plt.xlim(-1, 1)
    plt.title("Correlation Funnel")
    plt.xlabel("Correlation")
    plt.ylabel("Feature")
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def save_plots(histogram: pd.DataFrame, means: pd.DataFrame, funnel: pd.DataFrame,
               reports_dir: str) -> Dict[str, str]:
    os.makedirs(reports_dir, exist_ok=True)
    return {
        "group_means": save_group_means_plot(means, os.path.join(reports_dir, "avg_range_by_type.png")),
        "histogram": save_range_histogram(histogram, os.path.join(reports_dir, "range_histogram.png")),
        "funnel": save_correlation_funnel(funnel, os.path.join(reports_dir, "correlation_funnel.png")),
    }


# === Main Reporting Function ===
def headline(model) -> List[str]:
    lines = []
    for level, offset in model.offsets.items():
        direction = "decrease" if offset < 0 else "increase"
        lines.append(
            f"{level} vehicles show an average {direction} of {abs(offset):.0f} miles "
            f"in electric range compared to {model.reference_level} ({model.intercept:.0f} miles)."
        )
    return lines


def write_pdf(result, plots: Dict[str, str], reports_dir: str, sample: Optional[pd.DataFrame] = None) -> str:
    pdf = PDFReport()
    pdf.add_page()

    pdf.add_section_title(f"Report generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    pdf.add_section_title("Dataset Snapshot")
    snapshot = result.snapshot
    pdf.chapter_body(f"Shape: {snapshot['shape']}\nColumns: {', '.join(snapshot['columns'])}")
    pdf.chapter_body(f"Vehicles with electric range 0 (treated as missing): {result.zero_range_count}")
    if sample is not None and not sample.empty:
        pdf.add_section_title("Sample Rows")
        pdf.add_table(sample)

    pdf.add_section_title("Average Range by EV Type")
    pdf.add_table(result.group_means)
    pdf.add_image(plots["group_means"], "Avg range for respective EV type")
    pdf.add_image(plots["histogram"], "Range distribution for EV-type")

    pdf.add_section_title("Column Summary")
    pdf.add_table(result.columns)

    pdf.add_image(plots["funnel"], "Correlation Funnel")
    pdf.add_table(result.funnel.head(FUNNEL_TOP_N)[["feature", "bin", "correlation"]], max_cols_per_table=3)

    pdf.add_section_title("Linear Regression: electric range ~ EV type")
    pdf.chapter_body(f"Training rows: {result.n_train}\nTesting rows: {result.n_test}")
    pdf.add_table(result.model.to_frame())
    pdf.chapter_body(format_output(headline(result.model)))

    pdf.add_section_title("Model Evaluation (testing data)")
    pdf.add_table(result.metrics.to_frame())

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    report_path = os.path.join(reports_dir, f"ev_range_report_{timestamp}.pdf")
    pdf.output(report_path)
    return report_path


def print_summary(result) -> None:
    print("Column summary")
    print("--------------")
    print(result.columns.to_string(index=False))

    print("\nAverage electric range by EV type")
    print("---------------------------------")
    for _, row in result.group_means.iterrows():
        print(f"{row[TYPE_COLUMN]:<18} {row['avg_electric_range']:.1f} miles")

    print("\nCorrelation funnel (top features)")
    print("---------------------------------")
    print(result.funnel.head(FUNNEL_TOP_N).to_string(index=False))

    print("\nCoefficients")
    print("------------")
    print(result.model.to_frame().to_string(index=False))
    for line in headline(result.model):
        print(line)

    print("\nMetrics (testing data)")
    print("----------------------")
    print(result.metrics.to_frame().to_string(index=False))
