from setuptools import setup, find_packages

with open("requirements.txt") as f:
    required = f.read().splitlines()

setup(
    name="skyembed",
    version="0.0.1",
    packages=find_packages("src"),
    package_dir={"": "src"},
    package_data={"skyembed": ["templates/*.html"]},
    include_package_data=True,
    install_requires=required,
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["skyembed = skyembed.cli:main"]},
    description="Link previews for Bluesky posts, profiles, feeds, lists and starter packs",
)
