import pandas as pd
import networkx as nx

from slimnet import slim_config


def summarize_interactions(data):
    """
    Given the interaction table, count the interactions, peptides, and interacting genes found for each genotype, as well as the number of interactions called present by LFQ

    Parameters
    ----------
    data: pd.DataFrame
        interaction table (filtered or unfiltered)

    Returns
    -------
    summary: pd.DataFrame
        one row per genotype with counts of interactions, peptides, genes, and LFQ strict/loose calls
    """
    summary = data.groupby(slim_config.genotype_col).agg(**{'Interactions': (slim_config.peptide_col, 'size'),
                                                          'Peptides': (slim_config.peptide_col, 'nunique'),
                                                          'Genes': (slim_config.gene_col, 'nunique'),
                                                          'LFQ strict': (slim_config.lfq_strict_col, 'sum'),
                                                          'LFQ loose': (slim_config.lfq_loose_col, 'sum')})
    summary = summary.reindex([g for g in slim_config.GENOTYPES if g in summary.index] + [g for g in summary.index if g not in slim_config.GENOTYPES])
    summary[['LFQ strict', 'LFQ loose']] = summary[['LFQ strict', 'LFQ loose']].astype(int)
    return summary


def get_gene_interaction_counts(data):
    """
    For each interacting gene, count the number of wild-type and mutant peptides it interacts with

    Returns
    -------
    counts: pd.DataFrame
        indexed by gene, with 'wt', 'mut', and 'Difference' (mut - wt) columns, sorted by the absolute difference
    """
    counts = data.drop_duplicates(subset = [slim_config.gene_col, slim_config.peptide_col]).groupby([slim_config.gene_col, slim_config.genotype_col]).size().unstack(fill_value = 0)
    for genotype in slim_config.GENOTYPES:
        if genotype not in counts.columns:
            counts[genotype] = 0
    counts = counts[slim_config.GENOTYPES].copy()
    counts['Difference'] = counts['mut'] - counts['wt']
    counts = counts.reindex(counts['Difference'].abs().sort_values(ascending = False, kind = 'mergesort').index)
    counts.columns.name = None
    return counts


def get_community_table(communities, interaction_graph):
    """
    Summarize the size and composition of each community

    Parameters
    ----------
    communities: dict
        community label to member nodes
    interaction_graph: nx.MultiGraph
        interaction network with node_type attributes

    Returns
    -------
    community_table: pd.DataFrame
        one row per community with number of nodes, proteins, and peptides, and the proteins in the community
    """
    rows = []
    for label, members in communities.items():
        proteins = sorted([node for node in members if interaction_graph.nodes[node]['node_type'] == 'protein'])
        rows.append({'Community': label, 'Size': len(members), 'Proteins': len(proteins), 'Peptides': len(members) - len(proteins), 'Protein Members': ';'.join(proteins)})
    return pd.DataFrame(rows, columns = ['Community', 'Size', 'Proteins', 'Peptides', 'Protein Members'])


def get_network_stats(interaction_graph):
    """
    Given the networkx interaction graph, calculate various network centrality measures to identify the most connected proteins and peptides in the network
    """
    simple_graph = nx.Graph(interaction_graph)
    degree_centrality = nx.degree_centrality(simple_graph)
    closeness_centrality = nx.closeness_centrality(simple_graph)
    betweenness_centrality = nx.betweenness_centrality(simple_graph)
    network_stats = pd.DataFrame({'Degree': dict(interaction_graph.degree()), 'Degree Centrality':degree_centrality, 'Closeness':closeness_centrality,'Betweenness':betweenness_centrality})
    network_stats['Node Type'] = pd.Series(dict(interaction_graph.nodes(data = 'node_type')))
    return network_stats
