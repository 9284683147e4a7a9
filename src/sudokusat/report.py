from pathlib import Path
from typing import Dict, Optional, Union
import pandas as pd

REQUIRED_COLUMNS = ("step", "status", "removed", "time", "memory_peak_mb")


def read_results_from_csv(csv_path: Union[str, Path]) -> Optional[pd.DataFrame]:
    try:
        df = pd.read_csv(csv_path)
    except FileNotFoundError:
        print(f"File {csv_path} not found.")
        return None
    except pd.errors.EmptyDataError:
        print(f"File {csv_path} is empty.")
        return None
    except pd.errors.ParserError:
        print(f"Could not parse the file {csv_path}.")
        return None
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        print(f"File {csv_path} is missing columns: {', '.join(missing)}")
        return None
    return df


def summarize(df: pd.DataFrame) -> Dict[str, float]:
    """Aggregate numbers of a removal trace."""
    removed = df["removed"].astype(str).str.lower() == "true"
    return {
        "solver_calls": int(len(df)),
        "removed_cells": int(removed.sum()),
        "kept_cells": int((~removed).sum()),
        "total_time": float(df["time"].sum()),
        "mean_time": float(df["time"].mean()) if len(df) else 0.0,
        "memory_peak_mb": float(df["memory_peak_mb"].max()) if len(df) else 0.0,
    }


def plot_steps(df: pd.DataFrame, output_path: Union[str, Path]) -> Path:
    """Line plot of solver time per removal step, coloured by status."""
    # imported here so loading the CLI never imports pyplot
    import seaborn as sns
    from matplotlib.figure import Figure

    output_path = Path(output_path)
    fig = Figure(figsize=(8, 4))
    ax = fig.subplots()
    sns.lineplot(data=df, x="step", y="time", ax=ax, color="grey")
    sns.scatterplot(data=df, x="step", y="time", hue="status", ax=ax)
    ax.set_xlabel("removal step")
    ax.set_ylabel("solver time (s)")
    fig.tight_layout()
    fig.savefig(output_path)
    return output_path
