"""This package retrieves the planner's inputs and persists its state.

The key modules within this package include:
- `config.py`: Loads the YAML planning configuration and the websocket
  connection settings from the environment.
- `spot_prices_client.py`: Reads the upcoming spot prices published by the
  spot price exporter.
- `state_client.py`: Reads and stores the state between runs, in a local file
  or a Kubernetes ConfigMap.
- `api_calls.py`: Contains the Kubernetes API calls to get and replace a ConfigMap.
"""
