import pandas as pd
import numpy as np

import os

from slimnet import slim_config

compatibility_columns = ['PeptideID', 'SLiM', 'PFAM', 'uniprotMatch']


def join_unique_entries(x, sep = ';'):
    """
    Join the unique, non-missing entries of a series into a single string
    """
    entries = sorted(set([str(i) for i in x if i == i and i != '']))
    return sep.join(entries) if len(entries) > 0 else np.nan


def load_compatibility_table(file):
    """
    Load the precomputed table of SLiM to PFAM domain compatibility. Each row indicates that a peptide contains a SLiM that can be bound by a PFAM domain found in the protein given in uniprotMatch.

    Parameters
    ----------
    file: str
        path to the compatibility table (comma separated, or tab separated if the file ends in .tsv/.txt)

    Returns
    -------
    compatibility: pd.DataFrame
        compatibility table restricted to PeptideID, SLiM, PFAM and uniprotMatch columns
    """
    sep = '\t' if os.path.splitext(file)[1] in ['.tsv', '.txt'] else ','
    compatibility = pd.read_csv(file, sep = sep)
    missing = [col for col in compatibility_columns if col not in compatibility.columns]
    if len(missing) > 0:
        raise ValueError(f"Compatibility table is missing required columns: {', '.join(missing)}")
    return compatibility[compatibility_columns].drop_duplicates()


def add_slim_domain_compatibility(interactions, compatibility, report_success = True):
    """
    Annotate each peptide-protein interaction with the SLiMs on the peptide and the PFAM domains on the protein that are known to be compatible

    Parameters
    ----------
    interactions: pd.DataFrame
        interaction table, with PeptideID and uniprotMatch columns
    compatibility: pd.DataFrame
        SLiM to PFAM compatibility table, as returned by load_compatibility_table()
    report_success: bool
        whether to print the number of interactions with a compatible SLiM-domain pair

    Returns
    -------
    interactions: pd.DataFrame
        interaction table with additional 'SLiMs', 'Compatible Domains', and 'SLiM Compatible' columns
    """
    compatibility = compatibility.groupby([slim_config.peptide_col, slim_config.uniprot_match_col], as_index = False).agg({'SLiM': join_unique_entries, 'PFAM': join_unique_entries})
    compatibility = compatibility.rename(columns = {'SLiM':'SLiMs', 'PFAM':'Compatible Domains'})

    #remove annotations from a previous run before merging
    interactions = interactions.drop(columns = [col for col in ['SLiMs', 'Compatible Domains', 'SLiM Compatible'] if col in interactions.columns])
    interactions = interactions.merge(compatibility, how = 'left', on = [slim_config.peptide_col, slim_config.uniprot_match_col])
    interactions['SLiM Compatible'] = interactions['Compatible Domains'].notna()

    if report_success:
        print(f"{interactions['SLiM Compatible'].sum()} of {interactions.shape[0]} interactions have a compatible SLiM-domain pair")
    return interactions
