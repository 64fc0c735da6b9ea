r"""
Interaction communities and their enriched gene sets
====================================================

Proteins that bind the same peptides tend to share function. To find these groups, we build a network of significant peptide-protein interactions and split it into communities using greedy modularity clustering. The proteins in each community are then tested for enriched gene sets (GO, KEGG, and Reactome) using the EnrichR API through gseapy. First, load the example data and restrict to significant interactions.
"""

from slimnet import helpers
from slimnet.analyze import interactions
import matplotlib.pyplot as plt
import warnings
warnings.filterwarnings("ignore")

data = helpers.load_example_data(interactions = True)
significant = helpers.filter_interactions(data, lfq = 'strict', min_silac = 1.0)
edges = helpers.get_interaction_edges(significant)

# %%
# Next, construct the network and partition it into communities. The community table shows how many proteins and peptides ended up in each community.

network = interactions.interaction_network(edges)
network.find_communities()
network.get_community_table()

# %%
# We can look at the whole network, with nodes colored by community (proteins are circles, peptides are squares)

network.plot_interaction_network()
plt.show()

# %%
# Each community with at least 3 nodes and at least 2 proteins is annotated with enriched gene sets. Communities are processed independently, so enrichment can be run for several communities at once. If the EnrichR API fails for a community, that community is left out of the report and listed in `network.failed_communities`.

reports = network.get_community_reports(threads = 4)
for report in reports:
    print(report.community, sorted(report.proteins))

# %%
# Finally, plot the subgraph of each community alongside its 10 most significant terms

for report in reports:
    network.plot_community(report.community)
    plt.tight_layout()
    plt.show()
