r"""
Comparing wild-type and mutant peptide binding
==============================================

Mutations within a SLiM often disrupt binding to the domain that recognizes it. Here we summarize the interactions found for wild-type and mutant peptides, annotate interactions with compatible SLiM-domain pairs, and compare SILAC ratios between the two genotypes.
"""

from slimnet import helpers, annotate, plots
from slimnet.analyze import summarize, compare
import matplotlib.pyplot as plt

data, compatibility = helpers.load_example_data(interactions = True, compatibility = True)
data = annotate.add_slim_domain_compatibility(data, compatibility)

summarize.summarize_interactions(data)

# %%
# How many wild-type and mutant peptides does each protein bind?

summarize.get_gene_interaction_counts(data).head()

# %%
# Interactions with a known compatible SLiM-domain pair

data.loc[data['SLiM Compatible'], ['GeneName', 'PeptideID', 'genotype', 'SLiMs', 'Compatible Domains']]

# %%
# SILAC ratios of wild-type and mutant interactions, and per-protein comparison (Mann-Whitney U test with Benjamini-Hochberg correction)

plots.plot_silac_comparison(data)
plt.tight_layout()
plt.show()

compare.compare_silac_ratios(data, by = 'GeneName')
