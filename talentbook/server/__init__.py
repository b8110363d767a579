"""Remote persistence for pushed talentbook data"""
