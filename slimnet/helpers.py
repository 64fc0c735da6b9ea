import numpy as np
import pandas as pd

import os
from dataclasses import dataclass

from slimnet import slim_config
from slimnet import database_interfacing as di
from slimnet import annotate


def get_node_type(identifier, delimiter = slim_config.PEPTIDE_DELIMITER):
    """
    Classify a node identifier as a peptide or a protein. Peptide identifiers carry an isoform/mutation suffix separated by the peptide delimiter (e.g. 'pep1_wt'), while gene names do not.

    Parameters
    ----------
    identifier: str
        node identifier, as found in the GeneName or PeptideID column
    delimiter: str
        delimiter that marks a peptide identifier. Default is '_'.

    Returns
    -------
    node_type: str
        'peptide' or 'protein'
    """
    return 'peptide' if delimiter in str(identifier) else 'protein'


def _is_missing(value):
    if value is None:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ''


@dataclass(frozen = True)
class InteractionEdge:
    """
    A single retained peptide-protein interaction. Fields are validated once, when the edge is constructed.

    Attributes
    ----------
    source: str
        gene name of the interacting protein
    target: str
        peptide identifier (with isoform/mutation suffix)
    genotype: str
        'wt' or 'mut'
    silac_ratio: float
        median SILAC ratio of the interaction
    uniprot_match: str
        gene identifier used for enrichment queries
    peptide_uniprot_id: str
        UniProt accession of the protein the peptide derives from
    lfq_call: bool
        whether the interaction was called present by label-free quantification
    """
    source: str
    target: str
    genotype: str
    silac_ratio: float
    uniprot_match: str
    peptide_uniprot_id: str
    lfq_call: bool = False

    def __post_init__(self):
        for field_name in ['source', 'target', 'genotype', 'uniprot_match', 'peptide_uniprot_id']:
            if _is_missing(getattr(self, field_name)):
                raise ValueError(f'Interaction edge is missing a value for {field_name}: {self}')

        if self.genotype not in slim_config.GENOTYPES:
            raise ValueError(f"Genotype must be one of {', '.join(slim_config.GENOTYPES)}, not '{self.genotype}'")

        try:
            ratio = float(self.silac_ratio)
        except (TypeError, ValueError):
            raise ValueError(f'SILAC ratio for {self.source}-{self.target} is not numeric: {self.silac_ratio}')
        if np.isnan(ratio):
            raise ValueError(f'SILAC ratio for {self.source}-{self.target} is missing')
        object.__setattr__(self, 'silac_ratio', ratio)

        #protein and peptide identifiers must not be interchangeable
        if get_node_type(self.target) != 'peptide':
            raise ValueError(f"'{self.target}' is not a peptide identifier (expected '{slim_config.PEPTIDE_DELIMITER}' followed by an isoform/mutation suffix)")
        if get_node_type(self.source) != 'protein':
            raise ValueError(f"'{self.source}' looks like a peptide identifier but is used as the interacting protein")

    @classmethod
    def from_row(cls, row, silac_col = slim_config.silac_col, lfq_col = slim_config.lfq_strict_col):
        """
        Construct an edge from a row of the interaction table
        """
        return cls(source = row[slim_config.gene_col], target = row[slim_config.peptide_col], genotype = row[slim_config.genotype_col],
                   silac_ratio = row[silac_col], uniprot_match = row[slim_config.uniprot_match_col],
                   peptide_uniprot_id = row[slim_config.peptide_uniprot_col], lfq_call = convert_lfq_call(row[lfq_col]) if lfq_col in row else False)


def convert_lfq_call(value):
    """
    Convert a presence/absence call (bool, 0/1 or TRUE/FALSE string) into a bool. Missing calls are treated as absent.
    """
    if _is_missing(value):
        return False
    if isinstance(value, str):
        return value.strip().upper() in ['TRUE', 'T', 'YES', '1', '+']
    return bool(value)


def check_columns(data, required_columns = None):
    if required_columns is None:
        required_columns = slim_config.REQUIRED_COLUMNS
    missing = [col for col in required_columns if col not in data.columns]
    if len(missing) > 0:
        raise ValueError(f"Interaction data is missing required columns: {', '.join(missing)}")


def load_interaction_data(file, sep = None):
    """
    Load the peptide array interaction table and make sure all columns needed downstream are present

    Parameters
    ----------
    file: str
        path to the interaction table. Files ending in .tsv or .txt are read as tab separated, everything else as comma separated unless sep is given.
    sep: str
        column separator, overriding the extension-based guess

    Returns
    -------
    data: pd.DataFrame
        interaction table with LFQ calls converted to booleans and genotype labels lowercased
    """
    if sep is None:
        sep = '\t' if os.path.splitext(file)[1] in ['.tsv', '.txt'] else ','
    data = pd.read_csv(file, sep = sep)
    check_columns(data)

    data[slim_config.lfq_strict_col] = data[slim_config.lfq_strict_col].apply(convert_lfq_call)
    data[slim_config.lfq_loose_col] = data[slim_config.lfq_loose_col].apply(convert_lfq_call)
    data[slim_config.genotype_col] = data[slim_config.genotype_col].str.strip().str.lower()
    return data


def filter_interactions(data, lfq = 'strict', min_silac = 1.0, consistent_direction = True, report_removed = True):
    """
    Restrict the interaction table to significant interactions. An interaction is kept if it was called present by LFQ, or if its median SILAC ratio is large enough (and, optionally, its minimum and maximum SILAC ratios agree in sign).

    Parameters
    ----------
    data: pd.DataFrame
        interaction table, as returned by load_interaction_data()
    lfq: str
        which LFQ call to use, either 'strict' or 'loose'. None ignores LFQ calls. Default is 'strict'.
    min_silac: float
        minimum absolute median SILAC ratio for an interaction to be kept on SILAC evidence. None ignores SILAC ratios. Default is 1.0.
    consistent_direction: bool
        whether SILAC-based hits must have minimum and maximum ratios with the same sign. Default is True.
    report_removed: bool
        whether to print the number of interactions removed. Default is True.

    Returns
    -------
    filtered: pd.DataFrame
        significant interactions
    """
    if lfq is None and min_silac is None:
        raise ValueError('At least one of lfq or min_silac must be provided to filter interactions')

    keep = pd.Series(False, index = data.index)
    if lfq is not None:
        if lfq not in ['strict', 'loose']:
            raise ValueError("lfq must be either 'strict' or 'loose'")
        lfq_col = slim_config.lfq_strict_col if lfq == 'strict' else slim_config.lfq_loose_col
        keep = keep | data[lfq_col].apply(convert_lfq_call)

    if min_silac is not None:
        silac_hit = data[slim_config.silac_col].abs() >= min_silac
        if consistent_direction:
            silac_hit = silac_hit & (np.sign(data[slim_config.min_silac_col]) == np.sign(data[slim_config.max_silac_col]))
        keep = keep | silac_hit.fillna(False)

    filtered = data[keep].copy()
    if report_removed:
        print(f'{data.shape[0] - filtered.shape[0]} interactions removed due to filtering ({filtered.shape[0]} remaining)')
    return filtered


def get_interaction_edges(data, silac_col = slim_config.silac_col, lfq_col = slim_config.lfq_strict_col):
    """
    Convert a (filtered) interaction table into InteractionEdge objects, keeping row order. Rows with missing or malformed values raise a ValueError.
    """
    check_columns(data, required_columns = [slim_config.gene_col, slim_config.peptide_col, slim_config.genotype_col, silac_col, slim_config.uniprot_match_col, slim_config.peptide_uniprot_col])
    edges = []
    for i, row in data.iterrows():
        try:
            edges.append(InteractionEdge.from_row(row, silac_col = silac_col, lfq_col = lfq_col))
        except ValueError as e:
            raise ValueError(f'Malformed interaction in row {i}: {e}') from e
    return edges


def fill_missing_gene_names(data, id_to_gene = None, report_success = True):
    """
    Fill in missing uniprotMatch values using the gene name associated with the PeptideUniprotID accession in UniProt. If id_to_gene is not provided, gene names are downloaded from the UniProt REST API.

    Parameters
    ----------
    data: pd.DataFrame
        interaction table
    id_to_gene: dict
        mapping from UniProt accession to gene names (space separated, first name used). Default is None, which will query UniProt for the accessions with missing gene names.
    report_success: bool
        whether to print how many gene names were filled in

    Returns
    -------
    data: pd.DataFrame
        interaction table with missing uniprotMatch values filled where possible
    """
    data = data.copy()
    missing = data[slim_config.uniprot_match_col].apply(_is_missing)
    if not missing.any():
        return data

    if id_to_gene is None:
        accessions = data.loc[missing, slim_config.peptide_uniprot_col].dropna().unique().tolist()
        id_to_gene = di.get_uniprot_gene_names(accessions)

    def lookup(accession):
        names = id_to_gene.get(accession, '') if isinstance(accession, str) else ''
        return names.split(' ')[0] if names else np.nan

    data.loc[missing, slim_config.uniprot_match_col] = data.loc[missing, slim_config.peptide_uniprot_col].apply(lookup)
    if report_success:
        filled = missing.sum() - data[slim_config.uniprot_match_col].apply(_is_missing).sum()
        print(f'Filled {filled} of {missing.sum()} missing gene names from UniProt')
    return data


def load_example_data(interactions = True, compatibility = False):
    """
    Load the example peptide array interaction data (and SLiM-domain compatibility table) packaged with slimnet

    Parameters
    ----------
    interactions: bool
        whether to load the example interaction table. Default is True.
    compatibility: bool
        whether to load the example SLiM-domain compatibility table. Default is False.

    Returns
    -------
    pd.DataFrame or tuple of pd.DataFrame
        the requested example data, in the order listed above
    """
    if not interactions and not compatibility:
        raise ValueError('Please request at least one of interactions or compatibility')

    output = []
    if interactions:
        output.append(load_interaction_data(slim_config.resource_dir + 'example_interactions.csv'))
    if compatibility:
        compatibility_table = annotate.load_compatibility_table(slim_config.resource_dir + 'example_compatibility.csv')
        output.append(compatibility_table)
    return output[0] if len(output) == 1 else tuple(output)
