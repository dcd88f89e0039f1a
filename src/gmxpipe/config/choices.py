"""Literal choices accepted by the GROMACS tools the pipeline drives."""

# Force fields shipped in share/gromacs/top (pdb2gmx -ff)
FORCE_FIELDS = (
    "amber03",
    "amber94",
    "amber96",
    "amber99",
    "amber99sb",
    "amber99sb-ildn",
    "amberGS",
    "charmm27",
    "gromos43a1",
    "gromos43a2",
    "gromos45a3",
    "gromos53a5",
    "gromos53a6",
    "gromos54a7",
    "oplsaa",
)

# pdb2gmx -water
WATER_MODELS = ("none", "spc", "spce", "tip3p", "tip4p", "tip4pew", "tip5p", "tips3p")

# editconf -bt
BOX_TYPES = ("triclinic", "cubic", "dodecahedron", "octahedron")

FAILURE_POLICIES = ("abort", "continue")

# Default answers fed to each tool's group prompt
DEFAULT_SELECTIONS = {
    "genion_group": "SOL",
    "ligand_heavy_atoms": "0 & ! a H*",
    "restraint_group": "3",
    "coupling_groups": "1 | 13",
    "center_group": "Protein",
    "output_group": "System",
    "dump_group": "System",
    "rms": ["Backbone", "Backbone"],
    "rmsf": ["Backbone"],
    "hbond": ["Protein", "LIG"],
    "gyrate": ["Protein"],
    "energy": ["Potential", "0"],
}

# Human-readable prompt text for the CLI
SELECTION_PROMPTS = {
    "genion_group": "Group of solvent molecules to replace with ions",
    "ligand_heavy_atoms": "make_ndx selection for ligand heavy atoms",
    "restraint_group": "Index group for ligand position restraints",
    "coupling_groups": "make_ndx expression for the coupling group",
    "center_group": "Group to center the trajectory on",
    "output_group": "Group to write to the processed trajectory",
    "dump_group": "Group to write to the reference frame",
    "rms": "Groups for least-squares fit and RMSD (space separated)",
    "rmsf": "Group for RMSF",
    "hbond": "Donor/acceptor groups for hydrogen bonds (space separated)",
    "gyrate": "Group for radius of gyration",
    "energy": "Energy terms to extract (space separated, end with 0)",
}
