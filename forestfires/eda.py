"""
Exploratory Data Analysis (EDA) Module - Phase 1
=================================================

Descriptive views of the forest fires dataset. Nothing computed here feeds
the models.

Functions:
    - plot_distributions: Histograms of numeric columns
    - plot_box_plots: Box plots of standardized numeric columns
    - plot_correlation_matrix: Correlation ellipse map
    - plot_collinear_pairs: Scatter plots of the collinear pairs by month
    - plot_fires_by_day / plot_fires_by_month: Frequency charts
    - plot_spatial_occurrence / plot_spatial_weather: Grid tile maps
    - generate_eda_report: Full EDA report with all visualizations
"""

import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from matplotlib.patches import Ellipse
from scipy import stats

from .preprocessing import log_area
from .schema import (
    DAYS,
    MONTHS,
    VALID_RANGES,
    WEATHER_COLUMNS,
    COLLINEAR_PAIRS,
)

logger = logging.getLogger(__name__)

# Set style for all plots
plt.style.use('seaborn-v0_8-whitegrid')
sns.set_palette("husl")


def _subplot_grid(n_plots: int, n_cols: int, figsize: Tuple[int, int]):
    n_rows = (n_plots + n_cols - 1) // n_cols
    fig, axes = plt.subplots(n_rows, n_cols, figsize=figsize, squeeze=False)
    axes = axes.flatten()

    # Hide unused subplots
    for idx in range(n_plots, len(axes)):
        axes[idx].set_visible(False)

    return fig, axes


def _save(fig: plt.Figure, save_path: Optional[str], label: str) -> None:
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"{label} saved to {save_path}")


def _numeric_columns(df: pd.DataFrame) -> List[str]:
    return df.select_dtypes(include=[np.number]).columns.tolist()


def standardize(df: pd.DataFrame) -> pd.DataFrame:
    """Z-score every column; constant columns map to zero."""
    std = df.std(ddof=0).replace(0, 1)
    return (df - df.mean()) / std


def plot_distributions(
    df: pd.DataFrame,
    figsize: Tuple[int, int] = (15, 14),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Create distribution plots (histogram + KDE) for the numeric columns.

    Categorical columns are excluded.

    Args:
        df: Dataset
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    columns = _numeric_columns(df)
    fig, axes = _subplot_grid(len(columns), 3, figsize)

    for idx, col in enumerate(columns):
        ax = axes[idx]
        values = df[col].dropna()

        sns.histplot(values, kde=values.nunique() > 1, ax=ax, bins=30, alpha=0.7)

        mean_val = values.mean()
        median_val = values.median()
        ax.axvline(mean_val, color='red', linestyle='--', label=f'Mean: {mean_val:.2f}')
        ax.axvline(median_val, color='green', linestyle='--', label=f'Median: {median_val:.2f}')

        # Normality test needs a reasonable sample and some spread
        if len(values) >= 20 and values.std() > 0:
            _, p_value = stats.normaltest(values)
            normality = "Normal" if p_value > 0.05 else "Non-Normal"
            ax.set_title(f'{col} ({normality}, p={p_value:.3f})', fontsize=10, fontweight='bold')
        else:
            ax.set_title(col, fontsize=10, fontweight='bold')
        ax.legend(fontsize=8)

    fig.suptitle('Distribution Analysis', fontsize=14, fontweight='bold')
    fig.tight_layout()

    _save(fig, save_path, "Distribution plots")
    return fig


def plot_area_transform(
    df: pd.DataFrame,
    figsize: Tuple[int, int] = (12, 4),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Compare the burned area distribution before and after the log transform.

    Args:
        df: Dataset with an ``area`` column
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    fig, axes = plt.subplots(1, 2, figsize=figsize)

    sns.histplot(df['area'], bins=40, ax=axes[0], alpha=0.7)
    axes[0].set_title('Burned area (ha)', fontsize=10, fontweight='bold')

    sns.histplot(log_area(df['area']), bins=40, ax=axes[1], alpha=0.7, color='coral')
    axes[1].set_title('area_log (0 where area = 0)', fontsize=10, fontweight='bold')

    fig.suptitle('Target Transform', fontsize=14, fontweight='bold')
    fig.tight_layout()

    _save(fig, save_path, "Target transform plot")
    return fig


def plot_box_plots(
    df: pd.DataFrame,
    figsize: Tuple[int, int] = (12, 6),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Create box plots of standardized numeric columns for outlier detection.

    Args:
        df: Dataset
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    df_standardized = standardize(df[_numeric_columns(df)])

    df_standardized.boxplot(ax=ax, grid=True, rot=45)
    ax.axhline(0, color='gray', linestyle=':', linewidth=1)
    ax.set_title('Box Plots (Standardized) - Outlier Detection', fontsize=14, fontweight='bold')
    ax.set_ylabel('z-score')
    ax.set_xlabel('Columns')

    fig.tight_layout()

    _save(fig, save_path, "Box plots")
    return fig


def plot_correlation_matrix(
    df: pd.DataFrame,
    method: str = 'pearson',
    figsize: Tuple[int, int] = (10, 9),
    save_path: Optional[str] = None
) -> Tuple[plt.Figure, pd.DataFrame]:
    """
    Draw the correlation matrix of the numeric columns as an ellipse map.

    Each cell holds an ellipse whose tilt gives the sign of the correlation
    and whose narrowness and colour give its strength.

    Args:
        df: Dataset
        method: Correlation method ('pearson', 'spearman', 'kendall')
        figsize: Figure size (width, height)
        save_path: Path to save the figure (optional)

    Returns:
        Tuple of (Figure, correlation matrix DataFrame)
    """
    corr_matrix = df[_numeric_columns(df)].corr(method=method)
    n = len(corr_matrix)

    cmap = plt.get_cmap('RdBu_r')
    norm = plt.Normalize(vmin=-1, vmax=1)

    fig, ax = plt.subplots(figsize=figsize)

    for i in range(n):
        for j in range(n):
            r = corr_matrix.iloc[i, j]
            if np.isnan(r):
                continue
            # The y axis is inverted below, so a positive slope needs a negative angle
            ellipse = Ellipse(
                xy=(j, i),
                width=0.9,
                height=max(0.9 * (1 - abs(r)), 0.05),
                angle=-45 if r > 0 else 45,
                facecolor=cmap(norm(r)),
                edgecolor='gray',
                linewidth=0.5
            )
            ax.add_patch(ellipse)
            if i != j:
                ax.text(j, i, f'{r:.2f}', ha='center', va='center', fontsize=7)

    ax.set_xlim(-0.5, n - 0.5)
    ax.set_ylim(-0.5, n - 0.5)
    ax.invert_yaxis()
    ax.set_aspect('equal')
    ax.set_xticks(range(n))
    ax.set_xticklabels(corr_matrix.columns, rotation=45, ha='right')
    ax.set_yticks(range(n))
    ax.set_yticklabels(corr_matrix.index)
    ax.grid(False)

    mappable = plt.cm.ScalarMappable(norm=norm, cmap=cmap)
    mappable.set_array([])
    fig.colorbar(mappable, ax=ax, shrink=0.8, label='Correlation')

    ax.set_title(f'Correlation Matrix ({method.capitalize()})',
                 fontsize=14, fontweight='bold')
    fig.tight_layout()

    _save(fig, save_path, "Correlation matrix")
    return fig, corr_matrix


def plot_collinear_pairs(
    df: pd.DataFrame,
    pairs: Optional[List[Tuple[str, str]]] = None,
    figsize: Tuple[int, int] = (14, 6),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Scatter plots of collinear predictor pairs, coloured by month.

    Args:
        df: Dataset with ordered ``month`` categorical
        pairs: (x, y) column pairs (default: dc/dmc and relative_humidity/temp)
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    if pairs is None:
        pairs = COLLINEAR_PAIRS

    fig, axes = _subplot_grid(len(pairs), len(pairs), figsize)
    hue_order = [m for m in MONTHS if m in set(df['month'].astype(str))]

    for idx, (x_col, y_col) in enumerate(pairs):
        ax = axes[idx]
        plot_df = df[[x_col, y_col]].assign(month=df['month'].astype(str))
        sns.scatterplot(
            data=plot_df, x=x_col, y=y_col, hue='month',
            hue_order=hue_order, palette='husl', ax=ax, s=25, alpha=0.8
        )
        r = df[x_col].corr(df[y_col])
        ax.set_title(f'{x_col} vs {y_col} (r={r:.3f})', fontsize=11, fontweight='bold')
        ax.legend(fontsize=7, ncol=2, title='month')

    fig.suptitle('Collinear Predictor Pairs', fontsize=14, fontweight='bold')
    fig.tight_layout()

    _save(fig, save_path, "Collinear pairs plot")
    return fig


def plot_fires_by_day(
    df: pd.DataFrame,
    figsize: Tuple[int, int] = (8, 5),
    save_path: Optional[str] = None
) -> Tuple[plt.Figure, pd.Series]:
    """
    Bar chart of fire counts by day of week (Monday first).

    Returns:
        Tuple of (Figure, counts per day)
    """
    counts = df['day'].astype(str).value_counts().reindex(DAYS, fill_value=0)

    fig, ax = plt.subplots(figsize=figsize)
    ax.bar(counts.index, counts.values, color='steelblue', alpha=0.8)
    ax.set_xlabel('Day')
    ax.set_ylabel('Fires')
    ax.set_title('Fires by Day of Week', fontsize=14, fontweight='bold')

    fig.tight_layout()

    _save(fig, save_path, "Fires by day plot")
    return fig, counts


def plot_fires_by_month(
    df: pd.DataFrame,
    figsize: Tuple[int, int] = (11, 5),
    save_path: Optional[str] = None
) -> Tuple[plt.Figure, pd.DataFrame]:
    """
    Fire counts by month with the monthly temperature range overlaid.

    Returns:
        Tuple of (Figure, table with count, temp_min, temp_max per month)
    """
    months = df['month'].astype(str)
    table = pd.DataFrame({
        'count': months.value_counts().reindex(MONTHS, fill_value=0),
        'temp_min': df['temp'].groupby(months).min().reindex(MONTHS),
        'temp_max': df['temp'].groupby(months).max().reindex(MONTHS)
    })

    fig, ax = plt.subplots(figsize=figsize)
    x = np.arange(len(MONTHS))

    ax.bar(x, table['count'], color='steelblue', alpha=0.7, label='Fires')
    ax.set_xticks(x)
    ax.set_xticklabels(MONTHS)
    ax.set_xlabel('Month')
    ax.set_ylabel('Fires')

    ax2 = ax.twinx()
    ax2.plot(x, table['temp_max'], 'r-o', markersize=4, label='Max temp')
    ax2.plot(x, table['temp_min'], 'b-o', markersize=4, label='Min temp')
    ax2.fill_between(x, table['temp_min'], table['temp_max'], color='orange', alpha=0.15)
    ax2.set_ylabel('Temperature (°C)')
    ax2.grid(False)

    handles = ax.get_legend_handles_labels()
    handles2 = ax2.get_legend_handles_labels()
    ax.legend(handles[0] + handles2[0], handles[1] + handles2[1], loc='upper left', fontsize=8)
    ax.set_title('Fires and Temperature Range by Month', fontsize=14, fontweight='bold')

    fig.tight_layout()

    _save(fig, save_path, "Fires by month plot")
    return fig, table


def _grid_axes() -> Tuple[List[int], List[int]]:
    x_low, x_high = VALID_RANGES['x_coord']
    y_low, y_high = VALID_RANGES['y_coord']
    return list(range(int(x_low), int(x_high) + 1)), list(range(int(y_low), int(y_high) + 1))


def spatial_counts(df: pd.DataFrame) -> pd.DataFrame:
    """Record counts per grid cell (rows: y_coord, columns: x_coord)."""
    xs, ys = _grid_axes()
    return (
        df.groupby(['y_coord', 'x_coord']).size()
        .unstack(fill_value=0)
        .reindex(index=ys, columns=xs, fill_value=0)
    )


def plot_spatial_occurrence(
    df: pd.DataFrame,
    figsize: Tuple[int, int] = (8, 7),
    save_path: Optional[str] = None
) -> Tuple[plt.Figure, pd.DataFrame]:
    """
    Tile map of record counts over the park grid.

    Returns:
        Tuple of (Figure, count grid)
    """
    counts = spatial_counts(df)

    fig, ax = plt.subplots(figsize=figsize)
    sns.heatmap(counts, annot=True, fmt='d', cmap='YlOrRd', linewidths=0.5,
                cbar_kws={"label": "Fires"}, ax=ax)
    ax.invert_yaxis()
    ax.set_xlabel('X')
    ax.set_ylabel('Y')
    ax.set_title('Fire Occurrence by Grid Cell', fontsize=14, fontweight='bold')

    fig.tight_layout()

    _save(fig, save_path, "Spatial occurrence plot")
    return fig, counts


def compute_spatial_means(
    df: pd.DataFrame,
    columns: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Mean of each standardized weather variable per grid cell.

    Args:
        df: Dataset
        columns: Variables to include (default: every weather column present)

    Returns:
        DataFrame indexed by (x_coord, y_coord), one column per variable
    """
    if columns is None:
        columns = [col for col in WEATHER_COLUMNS if col in df.columns]

    standardized = standardize(df[columns].astype(float))
    standardized['x_coord'] = df['x_coord']
    standardized['y_coord'] = df['y_coord']

    return standardized.groupby(['x_coord', 'y_coord'])[columns].mean()


def plot_spatial_weather(
    df: pd.DataFrame,
    columns: Optional[List[str]] = None,
    figsize: Tuple[int, int] = (16, 14),
    save_path: Optional[str] = None
) -> Tuple[plt.Figure, pd.DataFrame]:
    """
    Faceted tile maps of the standardized mean of each weather variable.

    Returns:
        Tuple of (Figure, spatial means table)
    """
    means = compute_spatial_means(df, columns)
    xs, ys = _grid_axes()

    fig, axes = _subplot_grid(len(means.columns), 3, figsize)

    for idx, col in enumerate(means.columns):
        ax = axes[idx]
        grid = (
            means[col].unstack('x_coord')
            .reindex(index=ys, columns=xs)
        )
        sns.heatmap(grid, cmap='RdBu_r', center=0, linewidths=0.3, ax=ax,
                    cbar_kws={"shrink": 0.8})
        ax.invert_yaxis()
        ax.set_title(col, fontsize=10, fontweight='bold')
        ax.set_xlabel('X')
        ax.set_ylabel('Y')

    fig.suptitle('Standardized Mean by Grid Cell', fontsize=14, fontweight='bold')
    fig.tight_layout()

    _save(fig, save_path, "Spatial weather plot")
    return fig, means


def generate_eda_report(
    df: pd.DataFrame,
    output_dir: str = "reports/figures/",
    show_plots: bool = False
) -> Dict[str, Any]:
    """
    Generate a complete EDA report with all visualizations.

    Args:
        df: Dataset with reordered categoricals
        output_dir: Directory to save figures
        show_plots: Whether to display plots interactively

    Returns:
        Dictionary containing EDA results and file paths
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    report = {
        "data_shape": df.shape,
        "columns": list(df.columns),
        "figures": [],
        "correlation_matrix": None,
        "statistics": {}
    }

    logger.info("=" * 60)
    logger.info("STARTING EXPLORATORY DATA ANALYSIS (Phase 1)")
    logger.info("=" * 60)

    def keep(fig: plt.Figure, name: str) -> None:
        report["figures"].append(name)
        if not show_plots:
            plt.close(fig)

    logger.info("Plotting distributions...")
    keep(plot_distributions(df, save_path=str(output_dir / "01_distributions.png")),
         "01_distributions.png")

    logger.info("Plotting target transform...")
    keep(plot_area_transform(df, save_path=str(output_dir / "02_area_transform.png")),
         "02_area_transform.png")

    logger.info("Creating box plots for outlier detection...")
    keep(plot_box_plots(df, save_path=str(output_dir / "03_box_plots.png")),
         "03_box_plots.png")

    logger.info("Computing correlation matrix...")
    fig, corr_matrix = plot_correlation_matrix(
        df, save_path=str(output_dir / "04_correlation_matrix.png")
    )
    keep(fig, "04_correlation_matrix.png")
    report["correlation_matrix"] = corr_matrix.to_dict()

    logger.info("Plotting collinear pairs...")
    keep(plot_collinear_pairs(df, save_path=str(output_dir / "05_collinear_pairs.png")),
         "05_collinear_pairs.png")

    logger.info("Counting fires by day and month...")
    fig, day_counts = plot_fires_by_day(df, save_path=str(output_dir / "06_fires_by_day.png"))
    keep(fig, "06_fires_by_day.png")
    report["fires_by_day"] = {day: int(n) for day, n in day_counts.items()}

    fig, month_table = plot_fires_by_month(df, save_path=str(output_dir / "07_fires_by_month.png"))
    keep(fig, "07_fires_by_month.png")
    report["fires_by_month"] = {month: int(n) for month, n in month_table['count'].items()}

    logger.info("Mapping spatial occurrence...")
    fig, _ = plot_spatial_occurrence(df, save_path=str(output_dir / "08_spatial_occurrence.png"))
    keep(fig, "08_spatial_occurrence.png")

    fig, spatial_means = plot_spatial_weather(df, save_path=str(output_dir / "09_spatial_weather.png"))
    keep(fig, "09_spatial_weather.png")
    report["spatial_cells"] = int(len(spatial_means))

    for col in _numeric_columns(df):
        report["statistics"][col] = {
            "mean": float(df[col].mean()),
            "std": float(df[col].std()),
            "min": float(df[col].min()),
            "max": float(df[col].max()),
            "skew": float(df[col].skew()),
            "kurtosis": float(df[col].kurtosis())
        }

    if show_plots:
        plt.show()
        plt.close('all')

    logger.info("=" * 60)
    logger.info("EDA COMPLETE - All figures saved to: %s", output_dir)
    logger.info("=" * 60)

    return report


def print_correlation_insights(corr_matrix: pd.DataFrame, threshold: float = 0.5) -> None:
    """
    Print insights about strongly correlated variables.

    Args:
        corr_matrix: Correlation matrix DataFrame
        threshold: Correlation threshold for "strong" correlation
    """
    print("\n" + "=" * 50)
    print("CORRELATION INSIGHTS")
    print("=" * 50)

    strong_corr = []
    for i in range(len(corr_matrix.columns)):
        for j in range(i + 1, len(corr_matrix.columns)):
            corr_val = corr_matrix.iloc[i, j]
            if abs(corr_val) >= threshold:
                strong_corr.append({
                    "col1": corr_matrix.columns[i],
                    "col2": corr_matrix.columns[j],
                    "correlation": corr_val
                })

    if strong_corr:
        print(f"\nStrong correlations (|r| >= {threshold}):")
        for item in sorted(strong_corr, key=lambda x: abs(x["correlation"]), reverse=True):
            direction = "positive" if item["correlation"] > 0 else "negative"
            print(f"  • {item['col1']} ↔ {item['col2']}: {item['correlation']:.3f} ({direction})")

        print("\nInterpretation:")
        print("  - Strongly correlated predictors carry overlapping information")
        print("  - One of each pair is dropped before modeling (dmc, relative_humidity)")
    else:
        print(f"\nNo strong correlations found (|r| >= {threshold})")

    print("=" * 50 + "\n")
