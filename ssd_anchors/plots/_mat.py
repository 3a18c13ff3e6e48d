import os
import matplotlib.pyplot as plt


def set_theme_and_params():
    plt.style.use(os.environ.get("SSD_ANCHORS_MAT_THEME", "dark_background"))
    plt.rcParams["axes.spines.right"] = False
    plt.rcParams["axes.spines.top"] = False
    plt.rcParams["legend.fontsize"] = 10
