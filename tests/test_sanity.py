def test_imports():
    # Ensure the package and its public surface import cleanly
    import stable_flow_lab

    assert callable(stable_flow_lab.calculate_adjusted_volume)
    assert stable_flow_lab.get_excluded_addresses()
