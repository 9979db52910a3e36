from setuptools import setup, find_packages

with open('requirements.txt', 'r') as f:
    requirements = [line.strip() for line in f.readlines() if line.strip() and not line.startswith("#")]

setup(
    name                 = "epicitysim",
    version              = "0.0.0.dev0",
    description          = "Agent-based simulation of an epidemic spreading through a city.",
    long_description     = "Agent-based simulation of an epidemic spreading through households commuting "
                           "on a road network, with testing, isolation, vaccination and viral mutation.",
    classifiers          = [
        "Development Status :: 1 - Planning",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Scientific/Engineering",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    zip_safe             = False,
    python_requires      = '>=3.8',
    install_requires     = requirements,
    extras_require       = {
        "test": [
            "pytest>=6.0",
        ],
    },
    packages             = find_packages("src"),
    package_dir          = {'': 'src'},
    package_data         = {'epicitysim': ['configs/simulation/*.yaml']},
    entry_points         = {
        'console_scripts': ['epicitysim=epicitysim.run:main'],
    },
)
