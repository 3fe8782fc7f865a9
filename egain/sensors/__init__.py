"""eGain sensor models, fetching and poll cycle coordination."""
