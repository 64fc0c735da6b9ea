import numpy as np

from matplotlib import pyplot as plt
import matplotlib.lines as mlines
import matplotlib.patches as mpatches
import seaborn as sns
import networkx as nx

from slimnet import slim_config


def plot_community_subgraph(report, protein_color = None, peptide_color = None, genotype_colors = None, node_size = 80, label_nodes = True, fontsize = 6, ax = None):
    """
    Draw the subgraph of a single community, with proteins and peptides colored separately and edges colored by genotype. Edge width is scaled by the absolute SILAC ratio of the interaction.

    Parameters
    ----------
    report: CommunityReport
        community report from analyze.interactions
    protein_color: str
        color of protein nodes. Default is lightblue.
    peptide_color: str
        color of peptide nodes. Default is orange.
    genotype_colors: dict
        edge color for each genotype. Default is gray for wt and red for mut.
    node_size: int
        size of nodes
    label_nodes: bool
        whether to label nodes with their identifier. Default is True.
    ax: matplotlib.Axes
        axis to plot on, if None, will create new figure
    """
    protein_color = slim_config.node_colors['protein'] if protein_color is None else protein_color
    peptide_color = slim_config.node_colors['peptide'] if peptide_color is None else peptide_color
    genotype_colors = slim_config.genotype_colors if genotype_colors is None else genotype_colors

    if ax is None:
        fig, ax = plt.subplots(figsize = (4,4))

    subgraph = report.subgraph
    node_colors = [protein_color if subgraph.nodes[node]['node_type'] == 'protein' else peptide_color for node in subgraph.nodes]
    edge_colors = [genotype_colors.get(data['genotype'], 'black') for u, v, data in subgraph.edges(data = True)]

    #scale widths so the strongest interaction is drawn at 3 points
    weights = np.array([data['weight'] for u, v, data in subgraph.edges(data = True)], dtype = float)
    max_weight = weights.max() if len(weights) > 0 and weights.max() > 0 else 1
    widths = 0.5 + 2.5*weights/max_weight

    nx.draw_networkx_nodes(subgraph, pos = report.layout, node_color = node_colors, node_size = node_size, edgecolors = 'black', linewidths = 0.3, ax = ax)
    nx.draw_networkx_edges(subgraph, pos = report.layout, edge_color = edge_colors, width = widths, ax = ax)
    if label_nodes:
        nx.draw_networkx_labels(subgraph, pos = report.layout, font_size = fontsize, ax = ax)
    ax.axis('off')

    #add legend for node and edge types
    protein_node = mlines.Line2D([0], [0], color='w', marker = 'o', markersize=6, markerfacecolor = protein_color, markeredgecolor='black', label='Protein')
    peptide_node = mlines.Line2D([0], [0], color='w', marker = 'o', markersize=6, markerfacecolor = peptide_color, markeredgecolor='black', label='Peptide')
    genotype_lines = [mlines.Line2D([0], [0], color = color, label = genotype) for genotype, color in genotype_colors.items()]
    ax.legend(handles = [protein_node, peptide_node] + genotype_lines, loc = 'upper center', ncol = 2, fontsize = 6, bbox_to_anchor = (0.5, 1.1))
    return ax


def plot_enrichment_bars(enrichment_results, top_terms = slim_config.TOP_TERMS, source_colors = None, fontsize = 8, ax = None):
    """
    Plot the most significant enrichment terms as horizontal bars of -log10(p-value), colored by the source of the term (GO:BP, GO:MF, GO:CC, KEGG, REACTOME)

    Parameters
    ----------
    enrichment_results: pd.DataFrame
        enrichment records with 'Term', 'Source', and 'P-value' columns
    top_terms: int
        number of terms to plot. Default is 10.
    source_colors: dict
        color for each source. Default is slim_config.source_colors.
    ax: matplotlib.Axes
        axis to plot on, if None, will create new figure
    """
    source_colors = slim_config.source_colors if source_colors is None else source_colors
    plt_data = enrichment_results.sort_values(by = 'P-value', kind = 'mergesort').head(top_terms).copy()
    #most significant term at the top
    plt_data = plt_data.iloc[::-1]
    plt_data['-log10(p)'] = -np.log10(plt_data['P-value'].clip(lower = 1e-300))

    if ax is None:
        fig, ax = plt.subplots(figsize = (3, max(1, 0.3*plt_data.shape[0])))

    colors = [source_colors.get(source, 'gray') for source in plt_data['Source']]
    ax.barh(range(plt_data.shape[0]), plt_data['-log10(p)'].values, color = colors, edgecolor = 'black', linewidth = 0.3)
    ax.set_yticks(range(plt_data.shape[0]))
    ax.set_yticklabels(plt_data['Term'].values, fontsize = fontsize)
    ax.set_xlabel('-log10(p-value)', fontsize = fontsize + 1)

    handles = [mpatches.Patch(facecolor = source_colors.get(source, 'gray'), edgecolor = 'black', label = source) for source in plt_data['Source'].unique()]
    ax.legend(handles = handles, fontsize = 6, title = 'Source', title_fontsize = 7, loc = 'lower right')
    return ax


def plot_community(report, top_terms = slim_config.TOP_TERMS, figsize = (10, 4), label_nodes = True):
    """
    Plot a community report as a single figure, with the community subgraph on the left and its top enriched terms on the right

    Parameters
    ----------
    report: CommunityReport
        community report from analyze.interactions
    top_terms: int
        number of enrichment terms to show. Default is 10.
    figsize: tuple
        size of the figure

    Returns
    -------
    fig: matplotlib.Figure
    """
    fig, axes = plt.subplots(ncols = 2, figsize = figsize, gridspec_kw = {'width_ratios':[1, 1.2]})
    plot_community_subgraph(report, label_nodes = label_nodes, ax = axes[0])
    plot_enrichment_bars(report.top_terms(top_terms), top_terms = top_terms, ax = axes[1])
    fig.suptitle(f'Community {report.community} ({len(report.proteins)} proteins, {len(report.members) - len(report.proteins)} peptides)', fontsize = 10, weight = 'bold')
    return fig


def plot_silac_comparison(data, value_col = slim_config.silac_col, palette = None, ax = None):
    """
    Compare SILAC ratios of wild-type and mutant peptide interactions with a box plot overlaid with individual interactions
    """
    palette = slim_config.genotype_colors if palette is None else palette
    if ax is None:
        fig, ax = plt.subplots(figsize = (3,3))

    order = [g for g in slim_config.GENOTYPES if g in data[slim_config.genotype_col].unique()]
    sns.boxplot(data = data, x = slim_config.genotype_col, y = value_col, order = order, color = 'white', showfliers = False, ax = ax)
    sns.stripplot(data = data, x = slim_config.genotype_col, y = value_col, order = order, hue = slim_config.genotype_col, hue_order = order, palette = palette, size = 3, alpha = 0.7, legend = False, ax = ax)
    ax.axhline(0, color = 'black', lw = 0.5, ls = '--')
    ax.set_xlabel('')
    ax.set_ylabel('Median SILAC ratio')
    return ax


def plot_interaction_network(interaction_graph, membership = None, node_size = 20, edgecolor = 'gray', seed = slim_config.LAYOUT_SEED, ax = None):
    """
    Plot the full interaction network. If community membership is provided, nodes are colored by community, otherwise by node type.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize = (6,6))

    simple_graph = nx.Graph(interaction_graph)
    pos = nx.spring_layout(simple_graph, seed = seed)
    if membership is not None:
        n_communities = max(membership.values()) + 1 if len(membership) > 0 else 1
        palette = sns.color_palette('husl', n_colors = n_communities)
        node_colors = [palette[membership[node]] for node in simple_graph.nodes]
    else:
        node_colors = [slim_config.node_colors[simple_graph.nodes[node]['node_type']] for node in simple_graph.nodes]

    node_shapes = {'protein':'o', 'peptide':'s'}
    for node_type, shape in node_shapes.items():
        nodelist = [node for node in simple_graph.nodes if simple_graph.nodes[node]['node_type'] == node_type]
        colors = [color for node, color in zip(simple_graph.nodes, node_colors) if simple_graph.nodes[node]['node_type'] == node_type]
        nx.draw_networkx_nodes(simple_graph, pos = pos, nodelist = nodelist, node_color = colors, node_shape = shape, node_size = node_size, ax = ax)
    nx.draw_networkx_edges(simple_graph, pos = pos, edge_color = edgecolor, width = 0.5, ax = ax)
    ax.axis('off')
    return ax


def plot_network_centrality(network_stats, centrality_measure = 'Degree', top_N = 10, protein_color = 'lightblue', peptide_color = 'orange', ax = None):
    if centrality_measure not in network_stats.columns:
        raise ValueError('Centrality measure not found in network_stats dataframe. Available measures include Degree, Degree Centrality, Closeness, and Betweenness.')

    #get specific centrality measure
    plt_data = network_stats.sort_values(by = centrality_measure, ascending = False).iloc[:top_N]
    colors = [protein_color if node_type == 'protein' else peptide_color for node_type in plt_data['Node Type']]

    if ax is None:
        fig, ax = plt.subplots(figsize = (3,3))

    ax.barh(plt_data.index[::-1], plt_data[centrality_measure].values[::-1], color = colors[::-1], edgecolor = 'black')
    ax.set_xlabel(f'{centrality_measure}')
    return ax
