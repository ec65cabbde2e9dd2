"""Application services for the ship CLI.

Services implement the release logic, coordinating between the domain
types (core/) and infrastructure adapters (git/, platform/).
"""
