"""
Plotting utilities for trim telemetry.
Time histories of trim angle, applied deflection and off-axis thrust error.
"""

import os

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for saving
import matplotlib.pyplot as plt


# ---------------------------------------------------------------------------
# PlotStyle -- shared styling helpers
# ---------------------------------------------------------------------------

class PlotStyle:
    """Shared styling and figure management for trim plots."""

    COLORS = {
        'primary': '#2E86AB',
        'secondary': '#A23B72',
        'accent': '#F18F01',
        'limit': '#C73E1D',
        'neutral': '#546E7A',
    }

    PALETTE = ['#2E86AB', '#F18F01', '#2E7D32', '#C73E1D', '#7B1FA2', '#00838F']

    @staticmethod
    def setup_style():
        """Set matplotlib rcParams once per figure."""
        plt.rcParams.update({
            'font.size': 11,
            'axes.labelsize': 12,
            'axes.titlesize': 13,
            'axes.titleweight': 'bold',
            'axes.grid': True,
            'axes.spines.top': False,
            'axes.spines.right': False,
            'axes.prop_cycle': plt.cycler(color=PlotStyle.PALETTE),
            'grid.color': '#E0E0E0',
            'grid.alpha': 0.7,
            'lines.linewidth': 1.8,
            'legend.fontsize': 9,
            'figure.facecolor': 'white',
        })

    @staticmethod
    def save_figure(fig, filepath, dpi=150):
        """Save *fig* to *filepath*, creating directories as needed."""
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fig.savefig(filepath, dpi=dpi, bbox_inches='tight',
                    facecolor='white', edgecolor='none')
        plt.close(fig)


def _trim_parts(df):
    """Part names that have trim columns in the telemetry frame."""
    suffix = '_trim_angle'
    return [c[:-len(suffix)] for c in df.columns if c.endswith(suffix)]


def plot_trim_history(df, filepath, trim_limits=None):
    """Trim angles and off-axis thrust error versus time.

    Parameters
    ----------
    df : pandas.DataFrame
        Output of ``TrimSimulation.get_telemetry``.
    filepath : str
        Destination image path.
    trim_limits : dict, optional
        ``{part_name: limit_deg}``; drawn as dashed horizontal lines.

    Returns
    -------
    str
        The path written.
    """
    PlotStyle.setup_style()
    fig, (ax_trim, ax_err) = plt.subplots(2, 1, figsize=(10, 7), sharex=True)
    t = df['time'].to_numpy()

    for name in _trim_parts(df):
        ax_trim.plot(t, df[f'{name}_trim_angle'].to_numpy(), linestyle=':',
                     label=f'{name} ideal')
        ax_trim.plot(t, df[f'{name}_applied_angle'].to_numpy(),
                     label=f'{name} applied')
        if trim_limits and name in trim_limits:
            ax_trim.axhline(trim_limits[name], color=PlotStyle.COLORS['limit'],
                            linestyle='--', linewidth=1.0)
    ax_trim.set_ylabel('Trim angle (deg)')
    ax_trim.set_title('Auto-trim deflection')
    if ax_trim.get_legend_handles_labels()[0]:
        ax_trim.legend(loc='upper right')

    ax_err.plot(t, df['untrimmed_error_deg'].to_numpy(),
                color=PlotStyle.COLORS['neutral'], label='untrimmed')
    ax_err.plot(t, df['residual_error_deg'].to_numpy(),
                color=PlotStyle.COLORS['primary'], label='after trim')
    ax_err.set_xlabel('Time (s)')
    ax_err.set_ylabel('Off-axis error (deg)')
    ax_err.set_title('Thrust line vs. center of mass')
    ax_err.legend(loc='upper right')

    PlotStyle.save_figure(fig, filepath)
    return filepath


def plot_deflection_histogram(df, filepath, bins=30):
    """Distribution of applied deflection per trim part.

    Steps without any applied trim are left out.
    """
    PlotStyle.setup_style()
    fig, ax = plt.subplots(figsize=(8, 5))

    for name in _trim_parts(df):
        values = df[f'{name}_deflection'].to_numpy()
        values = values[np.isfinite(values) & (values > 0.0)]
        if values.size:
            ax.hist(values, bins=bins, alpha=0.6, label=name)

    ax.set_xlabel('Deflection from neutral (deg)')
    ax.set_ylabel('Steps')
    ax.set_title('Applied trim deflection')
    if ax.get_legend_handles_labels()[0]:
        ax.legend()

    PlotStyle.save_figure(fig, filepath)
    return filepath
