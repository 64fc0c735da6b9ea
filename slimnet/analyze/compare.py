import numpy as np
import pandas as pd

import scipy.stats as stats
from statsmodels.stats.multitest import fdrcorrection

from slimnet import slim_config


def compare_genotype_values(wt_values, mut_values):
    """
    Compare wild-type and mutant SILAC ratios with a two-sided Mann-Whitney U test

    Returns
    -------
    statistic, p: float
        U statistic and p-value. Both are np.nan if either group is empty.
    """
    wt_values = np.asarray(wt_values, dtype = float)
    mut_values = np.asarray(mut_values, dtype = float)
    wt_values = wt_values[~np.isnan(wt_values)]
    mut_values = mut_values[~np.isnan(mut_values)]
    if len(wt_values) == 0 or len(mut_values) == 0:
        return np.nan, np.nan

    result = stats.mannwhitneyu(wt_values, mut_values, alternative = 'two-sided')
    return result.statistic, result.pvalue


def compare_silac_ratios(data, by = slim_config.gene_col, value_col = slim_config.silac_col, alpha = 0.05):
    """
    For each group (by default, each interacting gene), test whether SILAC ratios differ between wild-type and mutant peptides. Groups without both genotypes are skipped. P-values are corrected with the Benjamini-Hochberg procedure.

    Parameters
    ----------
    data: pd.DataFrame
        interaction table
    by: str
        column to group interactions by. Default is 'GeneName'. None compares all interactions at once.
    value_col: str
        column with the values to compare. Default is 'Median.SILAC.ratio'.
    alpha: float
        FDR threshold used for the 'Significant' column. Default is 0.05.

    Returns
    -------
    results: pd.DataFrame
        one row per group with the number of wt/mut interactions, median ratio of each genotype, U statistic, p-value, FDR, and whether the difference is significant
    """
    if by is None:
        groups = [('All', data)]
    else:
        groups = data.groupby(by)

    rows = []
    for name, group in groups:
        wt_values = group.loc[group[slim_config.genotype_col] == 'wt', value_col]
        mut_values = group.loc[group[slim_config.genotype_col] == 'mut', value_col]
        if wt_values.dropna().empty or mut_values.dropna().empty:
            continue
        statistic, p = compare_genotype_values(wt_values, mut_values)
        rows.append({'Group': name, 'Number wt': wt_values.shape[0], 'Number mut': mut_values.shape[0], 'Median wt': wt_values.median(), 'Median mut': mut_values.median(), 'U statistic': statistic, 'p': p})

    results = pd.DataFrame(rows, columns = ['Group', 'Number wt', 'Number mut', 'Median wt', 'Median mut', 'U statistic', 'p'])
    if results.empty:
        results['FDR'] = pd.Series(dtype = float)
        results['Significant'] = pd.Series(dtype = bool)
        return results

    results['FDR'] = fdrcorrection(results['p'].values)[1]
    results['Significant'] = results['FDR'] <= alpha
    return results.sort_values(by = 'p', kind = 'mergesort').reset_index(drop = True)
