import setuptools

setuptools.setup(
    name="dicebot",
    version="0.0.0",
    classifiers=["Programming Language :: Python :: 3"],
    packages=setuptools.find_packages(exclude=["tests"]),
    package_data={"dicebot": ["settings.default.yaml"]},
    entry_points={"console_scripts": ["dicebot=dicebot.__main__:main"]},
    install_requires=["discord.py", "pyyaml"],
    extras_require={"test": ["pytest"]},
)
