import pandas as pd
import networkx as nx
from networkx.algorithms.community import greedy_modularity_communities

import concurrent.futures
from dataclasses import dataclass, field

from tqdm import tqdm

from slimnet import slim_config, helpers
from slimnet import plots as slim_plots
from slimnet.analyze import enrichment, summarize


@dataclass
class CommunityReport:
    """
    Annotation of a single interaction community: the subgraph to draw and the enriched gene sets of its proteins

    Attributes
    ----------
    community: int
        community label assigned during partitioning
    members: frozenset
        node identifiers (proteins and peptides) in the community
    proteins: frozenset
        protein node identifiers in the community
    subgraph: nx.MultiGraph
        interactions whose peptide lies in the community, with node_type on nodes and genotype/weight on edges
    layout: dict
        node positions for drawing the subgraph
    enrichment: pd.DataFrame
        enrichment records ('Term', 'Source', 'P-value', 'Community'), ordered by ascending p-value
    """
    community: int
    members: frozenset
    proteins: frozenset
    subgraph: nx.MultiGraph
    layout: dict = field(repr = False)
    enrichment: pd.DataFrame = field(repr = False)

    def top_terms(self, n = slim_config.TOP_TERMS):
        """
        Return the n most significant enrichment terms, in ascending p-value order
        """
        return enrichment.rank_enrichment(self.enrichment, top_terms = n)


def build_interaction_graph(edges):
    """
    Construct the peptide-protein interaction network. Every interaction is kept as its own edge, so repeated interactions between the same pair appear as parallel edges. Each node is tagged with its node_type ('protein' or 'peptide').

    Parameters
    ----------
    edges: list of InteractionEdge
        filtered interactions, as returned by helpers.get_interaction_edges()

    Returns
    -------
    interaction_graph: nx.MultiGraph
        interaction network with one edge per interaction
    """
    interaction_graph = nx.MultiGraph()
    for i, edge in enumerate(edges):
        for node in [edge.source, edge.target]:
            if node not in interaction_graph:
                interaction_graph.add_node(node, node_type = helpers.get_node_type(node))
        interaction_graph.add_edge(edge.source, edge.target, genotype = edge.genotype, silac_ratio = edge.silac_ratio, uniprot_match = edge.uniprot_match, peptide_uniprot_id = edge.peptide_uniprot_id, edge_index = i)
    return interaction_graph


def simplify_graph(interaction_graph):
    """
    Collapse parallel edges into a single edge (recording the number of collapsed edges as 'multiplicity') and remove self loops
    """
    simple_graph = nx.Graph()
    simple_graph.add_nodes_from(interaction_graph.nodes(data = True))
    for u, v in interaction_graph.edges():
        if u == v:
            continue
        if simple_graph.has_edge(u, v):
            simple_graph[u][v]['multiplicity'] += 1
        else:
            simple_graph.add_edge(u, v, multiplicity = 1)
    return simple_graph


def find_communities(interaction_graph, weight = None):
    """
    Partition the interaction network into communities using greedy modularity maximization (Clauset-Newman-Moore) on the simplified graph. Every node is assigned to exactly one community.

    Parameters
    ----------
    interaction_graph: nx.MultiGraph
        interaction network, as returned by build_interaction_graph()
    weight: str
        edge attribute of the simplified graph to use as weight ('multiplicity' weights pairs by the number of interactions between them). Default is None (unweighted).

    Returns
    -------
    membership: dict
        mapping from node identifier to community label. Labels follow the order communities are returned by networkx (largest first).
    """
    if interaction_graph.number_of_nodes() == 0:
        return {}

    simple_graph = simplify_graph(interaction_graph)
    if simple_graph.number_of_edges() == 0:
        communities = [frozenset([node]) for node in simple_graph.nodes]
    else:
        communities = greedy_modularity_communities(simple_graph, weight = weight)

    membership = {}
    for label, community in enumerate(communities):
        for node in community:
            membership[node] = label
    return membership


def get_communities(membership):
    """
    Convert a node to community mapping into a dictionary of community label to member nodes
    """
    communities = {}
    for node, label in membership.items():
        communities.setdefault(label, set()).add(node)
    return {label: frozenset(members) for label, members in sorted(communities.items())}


def get_protein_vertices(interaction_graph, members):
    return frozenset([node for node in members if interaction_graph.nodes[node]['node_type'] == 'protein'])


def get_enrichment_ids(edges, proteins):
    """
    Given the proteins in a community, get the gene identifiers used for enrichment from the uniprotMatch of every interaction the proteins take part in
    """
    return set([edge.uniprot_match for edge in edges if edge.source in proteins])


def build_community_subgraph(edges, members, seed = slim_config.LAYOUT_SEED):
    """
    Construct the subgraph for a community from the interactions whose peptide lies in the community. Proteins outside the community that bind those peptides are included. Edge weight is the absolute SILAC ratio, which is only used for drawing.

    Parameters
    ----------
    edges: list of InteractionEdge
        all interactions in the network
    members: frozenset
        node identifiers in the community
    seed: int
        random seed for the spring layout

    Returns
    -------
    subgraph: nx.MultiGraph
        community subgraph
    layout: dict
        spring layout positions for each node
    """
    subgraph = nx.MultiGraph()
    for edge in edges:
        if edge.target not in members:
            continue
        for node in [edge.source, edge.target]:
            if node not in subgraph:
                subgraph.add_node(node, node_type = helpers.get_node_type(node))
        subgraph.add_edge(edge.source, edge.target, genotype = edge.genotype, weight = abs(edge.silac_ratio))

    layout = nx.spring_layout(subgraph, seed = seed) if subgraph.number_of_nodes() > 0 else {}
    return subgraph, layout


def derive_community_report(interaction_graph, edges, community, members, enrich = None, min_subgraph_nodes = slim_config.MIN_SUBGRAPH_NODES, min_enrichment_proteins = slim_config.MIN_ENRICHMENT_PROTEINS, source_names = None, timeout = None, seed = slim_config.LAYOUT_SEED):
    """
    Derive the report for a single community: enrichment of its proteins and the subgraph of its interactions. Returns None unless both are available.

    Parameters
    ----------
    interaction_graph: nx.MultiGraph
        full interaction network
    edges: list of InteractionEdge
        all interactions in the network
    community: int
        community label
    members: frozenset
        node identifiers in the community
    enrich: callable
        enrichment function, see enrichment.get_community_enrichment(). Default is None (Enrichr).
    min_subgraph_nodes: int
        minimum number of nodes (proteins and peptides) for a subgraph to be built. Default is 3.
    min_enrichment_proteins: int
        minimum number of proteins for enrichment to be attempted. Default is 2.
    source_names: dict
        mapping from raw enrichment source code to display name
    timeout: float
        seconds to wait for the enrichment call, measured from when this community starts. Default is None (no limit).
    seed: int
        random seed for the subgraph layout

    Returns
    -------
    report: CommunityReport or None
    """
    proteins = get_protein_vertices(interaction_graph, members)

    community_enrichment = None
    if len(proteins) >= min_enrichment_proteins:
        ids = get_enrichment_ids(edges, proteins)
        community_enrichment = enrichment.get_community_enrichment(ids, community, enrich = enrich, source_names = source_names, timeout = timeout)

    subgraph = None
    if len(members) >= min_subgraph_nodes:
        subgraph, layout = build_community_subgraph(edges, members, seed = seed)

    if community_enrichment is None or subgraph is None:
        return None

    return CommunityReport(community = community, members = members, proteins = proteins, subgraph = subgraph, layout = layout, enrichment = community_enrichment)


class interaction_network:
    def __init__(self, edges, weight = None):
        """
        Peptide-protein interaction network, partitioned into communities that are annotated with enriched gene sets

        Parameters
        ----------
        edges: list of InteractionEdge
            filtered interactions, as returned by helpers.get_interaction_edges()
        weight: str
            edge attribute used when partitioning the simplified graph. Default is None (unweighted). Use 'multiplicity' to weight node pairs by their number of interactions.
        """
        self.edges = list(edges)
        self.weight = weight
        self.graph = build_interaction_graph(self.edges)
        self.membership = None
        self.communities = None
        self.reports = None
        self.failed_communities = {}
        self.network_stats = None

    def find_communities(self):
        """
        Partition the network into communities, saving the node to community mapping (membership) and the members of each community (communities)
        """
        self.membership = find_communities(self.graph, weight = self.weight)
        self.communities = get_communities(self.membership)

    def get_community_reports(self, min_members = slim_config.MIN_MEMBERS, enrich = None, min_subgraph_nodes = slim_config.MIN_SUBGRAPH_NODES, min_enrichment_proteins = slim_config.MIN_ENRICHMENT_PROTEINS, source_names = None, threads = 1, timeout = slim_config.ENRICHMENT_TIMEOUT, seed = slim_config.LAYOUT_SEED, verbose = True):
        """
        Derive a CommunityReport for each community, keeping only communities with both an enrichment result and a subgraph. Communities are processed independently (in parallel if threads > 1); if enrichment fails or times out for a community, that community is left out and recorded in failed_communities, while all others are still reported.

        Parameters
        ----------
        min_members: int
            communities with fewer nodes are skipped entirely. Default is 1.
        enrich: callable
            enrichment function that takes a set of gene identifiers and returns a dataframe with 'Term', 'Source', and 'P-value' columns. Default is None (Enrichr through gseapy).
        min_subgraph_nodes: int
            minimum number of nodes for a community subgraph. Default is 3.
        min_enrichment_proteins: int
            minimum number of proteins for enrichment to be attempted. Default is 2.
        source_names: dict
            mapping from raw enrichment source codes to display names. Default is None (slim_config.DOMAIN_SOURCE_NAMES).
        threads: int
            number of communities to process at once. Default is 1.
        timeout: float
            seconds to wait for the enrichment of each community, counted from when that community starts processing. None waits indefinitely. Default is slim_config.ENRICHMENT_TIMEOUT.
        seed: int
            random seed for subgraph layouts
        verbose: bool
            whether to show progress and report failed communities

        Returns
        -------
        reports: list of CommunityReport
            reports ordered by community label
        """
        if self.communities is None:
            self.find_communities()

        labels = [label for label, members in self.communities.items() if len(members) >= min_members]
        self.failed_communities = {}
        reports = []
        if len(labels) == 0:
            self.reports = reports
            return reports

        executor = concurrent.futures.ThreadPoolExecutor(max_workers = threads)
        try:
            futures = {}
            for label in labels:
                futures[label] = executor.submit(derive_community_report, self.graph, self.edges, label, self.communities[label], enrich = enrich, min_subgraph_nodes = min_subgraph_nodes, min_enrichment_proteins = min_enrichment_proteins, source_names = source_names, timeout = timeout, seed = seed)

            for label in tqdm(labels, desc = 'Annotating communities', disable = not verbose):
                try:
                    #each task enforces its own enrichment deadline
                    report = futures[label].result()
                except enrichment.EnrichmentServiceError as e:
                    self.failed_communities[label] = str(e)
                    continue

                if report is not None:
                    reports.append(report)
        finally:
            executor.shutdown(wait = False, cancel_futures = True)

        if verbose and len(self.failed_communities) > 0:
            for label, error in self.failed_communities.items():
                print(f'Community {label} left out of report, enrichment failed: {error}')

        self.reports = reports
        return reports

    def get_network_stats(self):
        """
        Calculate degree, closeness, and betweenness centrality for each node in the network
        """
        self.network_stats = summarize.get_network_stats(self.graph)
        return self.network_stats

    def get_community_table(self):
        """
        Summarize the size and composition of each community
        """
        if self.communities is None:
            self.find_communities()
        return summarize.get_community_table(self.communities, self.graph)

    def plot_interaction_network(self, color_by_community = True, **kwargs):
        if color_by_community and self.membership is None:
            self.find_communities()
        membership = self.membership if color_by_community else None
        return slim_plots.plot_interaction_network(self.graph, membership = membership, **kwargs)

    def plot_community(self, community, top_terms = slim_config.TOP_TERMS, **kwargs):
        """
        Plot the subgraph and top enriched terms of a reported community
        """
        if self.reports is None:
            raise ValueError('No community reports found. Please run get_community_reports() first.')
        for report in self.reports:
            if report.community == community:
                return slim_plots.plot_community(report, top_terms = top_terms, **kwargs)
        raise ValueError(f'Community {community} is not in the report. Reported communities: {", ".join([str(r.community) for r in self.reports])}')


def partition(edges, min_members = slim_config.MIN_MEMBERS, enrich = None, weight = None, verbose = True, **kwargs):
    """
    Build the interaction network from a list of interactions, partition it into communities, and return a CommunityReport for every community with both an enrichment result and a subgraph

    Parameters
    ----------
    edges: list of InteractionEdge
        filtered interactions
    min_members: int
        minimum number of nodes for a community to be considered. Default is 1.
    enrich: callable
        enrichment function. Default is None (Enrichr through gseapy).
    weight: str
        edge attribute used for partitioning. Default is None (unweighted).
    verbose: bool
        whether to show progress and report failed communities
    **kwargs:
        additional arguments passed to interaction_network.get_community_reports() (min_subgraph_nodes, min_enrichment_proteins, source_names, threads, timeout, seed)

    Returns
    -------
    reports: list of CommunityReport
        reports ordered by community label
    """
    network = interaction_network(edges, weight = weight)
    return network.get_community_reports(min_members = min_members, enrich = enrich, verbose = verbose, **kwargs)
